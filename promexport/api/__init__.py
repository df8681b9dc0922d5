"""Pull-mode HTTP surface: scrape endpoint and its transports."""

"""Infrastructure adapters: serializer, push transport, producers, logging."""

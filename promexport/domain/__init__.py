"""Domain layer: metric data model and error taxonomy."""

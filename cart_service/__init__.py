"""Cart state manager and HTTP service for the kit store."""

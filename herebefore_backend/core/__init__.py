"""Core infrastructure: configuration-backed logging, storage, models and the event bus."""

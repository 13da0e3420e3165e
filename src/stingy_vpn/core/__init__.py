"""Core infrastructure: configuration, logging and the resource reference."""

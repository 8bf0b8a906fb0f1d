"""Core building blocks: validation, cache connection, health."""

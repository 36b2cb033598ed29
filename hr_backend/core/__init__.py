"""Core infrastructure: configuration, database, security and access rules."""

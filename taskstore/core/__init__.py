"""Core domain primitives: exception hierarchy and settle results."""

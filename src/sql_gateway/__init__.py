"""Read-only SQL query gateway: validation, rate limiting and pooled execution."""

__version__ = "0.1.0"

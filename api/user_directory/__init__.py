"""User Directory API: a user service with cursor-based pagination."""

__version__ = "1.0.0"

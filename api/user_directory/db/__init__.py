"""Database access for the User Directory API."""

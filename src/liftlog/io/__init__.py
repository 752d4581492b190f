"""File storage and serialization."""

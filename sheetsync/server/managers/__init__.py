"""Data-access operations for the content service."""

"""Build and settings helpers."""

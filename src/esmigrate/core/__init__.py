"""Core domain models, errors and pure helpers."""

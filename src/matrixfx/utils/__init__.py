"""Shared helpers: configuration, frame utilities and statistics."""

"""Core constants and coordinate utilities."""

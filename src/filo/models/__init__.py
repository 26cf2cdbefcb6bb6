"""Data models for filo."""

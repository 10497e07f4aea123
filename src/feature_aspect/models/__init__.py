"""Data models for workspace metadata and change plans."""

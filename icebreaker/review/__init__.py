"""Grouping, review building and review synchronization."""

"""Shared utilities: errors, configuration and file grouping."""

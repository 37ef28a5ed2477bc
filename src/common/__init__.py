"""Shared logging, configuration and constants for reading-sync."""

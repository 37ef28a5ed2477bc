"""Extraction adapters for Apple Books and Kindle, and the sync CLI."""

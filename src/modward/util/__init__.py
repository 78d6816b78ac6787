"""Shared helpers: logging, embeds, durations and Discord utilities."""

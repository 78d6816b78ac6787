"""Command cogs."""

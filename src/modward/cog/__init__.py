"""Cogs registered on the bot."""

"""Modward: a rule-based Discord moderation bot."""

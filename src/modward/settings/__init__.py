"""Per-guild policy storage."""

"""Auto-moderation detection, the sanction ledger and enforcement actions."""

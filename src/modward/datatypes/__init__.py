"""
Plain data types shared across Modward.

- **discord_datatypes.py**: ID wrappers (GuildID, UserID, ChannelID, RoleID).
- **guild_policy.py**: GuildPolicy and the allow-listed GuildPolicyUpdate.
- **detection_rules.py**: process-wide knobs for the content checks.
- **sanction_datatypes.py**: ledger rows (mutes, warnings, bans, auto-mod
  log) plus ViolationKind and MuteState.
- **ticket_datatypes.py**: support ticket rows.
"""

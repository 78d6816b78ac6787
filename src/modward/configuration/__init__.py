"""
Configuration management for Modward.

- **app_configuration.py**: YAML configuration loader for process-wide
  settings: default command prefix, database location, auto-moderation
  detection knobs (spam window, caps ratio policy, link mode), the mute
  sweep interval and the embed colour scheme. Falls back to defaults on
  missing or malformed config files.

Per-guild policy lives in the database and is served by
``modward.settings.policy_store``.
"""

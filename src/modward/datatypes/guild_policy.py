"""
Per-guild moderation policy.

Database schema:
- guild_settings table, one row per guild, keyed by guild_id.

``GuildPolicyUpdate`` is the only way to change a policy. It names every
mutable column explicitly, so the SQL built from it can only ever touch
columns in :data:`POLICY_COLUMNS`.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from modward.datatypes.discord_datatypes import GuildID

DEFAULT_PREFIX = "!"
DEFAULT_SPAM_LIMIT = 5
DEFAULT_CAPS_PERCENT = 70

MAX_PREFIX_LENGTH = 5
SPAM_LIMIT_RANGE = (2, 50)
CAPS_PERCENT_RANGE = (1, 100)

# Columns a configuration update may write
POLICY_COLUMNS = frozenset({
    "prefix",
    "ticket_category_id",
    "ticket_log_channel_id",
    "mod_log_channel_id",
    "welcome_channel_id",
    "welcome_message",
    "moderator_role_id",
    "support_role_id",
    "auto_mod_enabled",
    "auto_mod_spam_limit",
    "auto_mod_caps_percent",
    "auto_mod_links_enabled",
})


@dataclass(slots=True)
class GuildPolicy:
    """Persistent per-guild configuration values.

    The ``ticket_*`` and ``support_role_id`` columns are stored and can be set
    with ``setchannel`` and ``setrole``, but nothing reads them until the
    ticket workflow exists.
    """

    guild_id: GuildID
    prefix: str = DEFAULT_PREFIX
    ticket_category_id: Optional[int] = None
    ticket_log_channel_id: Optional[int] = None
    mod_log_channel_id: Optional[int] = None
    welcome_channel_id: Optional[int] = None
    welcome_message: Optional[str] = None
    moderator_role_id: Optional[int] = None
    support_role_id: Optional[int] = None
    auto_mod_enabled: bool = False
    auto_mod_spam_limit: int = DEFAULT_SPAM_LIMIT
    auto_mod_caps_percent: int = DEFAULT_CAPS_PERCENT
    auto_mod_links_enabled: bool = False

    def with_changes(self, changes: Dict[str, Any]) -> "GuildPolicy":
        """Return a copy with ``changes`` applied (keys must be policy columns)."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(changes)
        return GuildPolicy(**values)


@dataclass(slots=True)
class GuildPolicyUpdate:
    """Explicit set of optional policy changes.

    A field left as ``None`` is not touched. Call :meth:`validate` before
    persisting; :meth:`changes` returns the columns to write.
    """

    prefix: Optional[str] = None
    ticket_category_id: Optional[int] = None
    ticket_log_channel_id: Optional[int] = None
    mod_log_channel_id: Optional[int] = None
    welcome_channel_id: Optional[int] = None
    welcome_message: Optional[str] = None
    moderator_role_id: Optional[int] = None
    support_role_id: Optional[int] = None
    auto_mod_enabled: Optional[bool] = None
    auto_mod_spam_limit: Optional[int] = None
    auto_mod_caps_percent: Optional[int] = None
    auto_mod_links_enabled: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        """Return ``{column: value}`` for every field that was set."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name not in POLICY_COLUMNS:
                raise ValueError(f"Unknown policy column: {f.name}")
            result[f.name] = value
        return result

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ValueError: With a message suitable for replying to the caller.
        """
        if self.prefix is not None:
            prefix = self.prefix.strip()
            if not prefix or len(prefix) > MAX_PREFIX_LENGTH or any(c.isspace() for c in self.prefix):
                raise ValueError(f"Please provide a valid prefix (max {MAX_PREFIX_LENGTH} characters).")
        if self.auto_mod_spam_limit is not None:
            low, high = SPAM_LIMIT_RANGE
            if not low <= self.auto_mod_spam_limit <= high:
                raise ValueError(f"Spam limit must be between {low} and {high} messages.")
        if self.auto_mod_caps_percent is not None:
            low, high = CAPS_PERCENT_RANGE
            if not low <= self.auto_mod_caps_percent <= high:
                raise ValueError(f"Caps threshold must be between {low} and {high} percent.")
        if self.welcome_message is not None and len(self.welcome_message) > 1500:
            raise ValueError("Welcome message must be at most 1500 characters.")

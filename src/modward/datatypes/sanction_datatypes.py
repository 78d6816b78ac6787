"""
Records kept by the sanction ledger and the violation kinds the detector
reports.

All timestamps are INTEGER unix seconds (UTC), the same representation the
database stores, so expiry checks are plain integer comparisons.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ViolationKind(Enum):
    """Auto-moderation rule a message broke."""

    SPAM = "spam"
    CAPS = "caps"
    LINK = "link"

    def __str__(self) -> str:
        return self.value

    @property
    def reason(self) -> str:
        """Human-readable reason shown to the author and in the mod log."""
        return VIOLATION_REASONS[self]


VIOLATION_REASONS = {
    ViolationKind.SPAM: "Spam detected",
    ViolationKind.CAPS: "Excessive caps usage",
    ViolationKind.LINK: "Unauthorized link posting",
}


class MuteState(Enum):
    """Lifecycle of a single mute row, as seen by the expiry reconciler."""

    ACTIVE = "active"
    EXPIRED_PENDING_LIFT = "expired_pending_lift"
    INACTIVE = "inactive"


@dataclass(slots=True)
class MuteRecord:
    """A single row from the ``mutes`` table."""

    id: int
    guild_id: int
    user_id: int
    moderator_id: int
    reason: str
    created_at: int
    expires_at: Optional[int]
    active: bool

    @property
    def is_permanent(self) -> bool:
        return self.expires_at is None

    def state_at(self, now: int) -> MuteState:
        """Derive the reconciler state of this mute at unix time ``now``.

        Permanent mutes stay ACTIVE until someone lifts them by hand.
        """
        if not self.active:
            return MuteState.INACTIVE
        if self.expires_at is not None and self.expires_at <= now:
            return MuteState.EXPIRED_PENDING_LIFT
        return MuteState.ACTIVE


@dataclass(slots=True)
class WarningRecord:
    """A single row from the ``warnings`` table."""

    id: int
    guild_id: int
    user_id: int
    moderator_id: int
    reason: str
    created_at: int


@dataclass(slots=True)
class BanRecord:
    """A single row from the ``bans`` table."""

    id: int
    guild_id: int
    user_id: int
    moderator_id: int
    reason: str
    created_at: int


@dataclass(slots=True)
class AutoModLogEntry:
    """A single row from the ``automod_logs`` table."""

    id: int
    guild_id: int
    user_id: int
    action: str
    reason: str
    created_at: int

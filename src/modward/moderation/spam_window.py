"""
Per-(guild, user) sliding windows for rate-based spam detection.

The tracker is owned by the auto-moderator instance rather than living at
module level, so each bot (and each test) gets its own state. It is
in-memory only and does not survive restarts.

``record_and_check`` contains no ``await``, so under asyncio every call runs
to completion before another message is processed for the same key.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Tuple

from modward.datatypes.guild_policy import GuildPolicy
from modward.util.logger import get_logger

logger = get_logger("spam_window")

WindowKey = Tuple[int, int]


class SpamWindowTracker:
    """Counts recent messages per (guild, user) within a fixed window."""

    def __init__(self, window_seconds: float = 5.0) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.window_seconds = float(window_seconds)
        self._windows: Dict[WindowKey, Deque[float]] = {}

    def _evict(self, timestamps: Deque[float], now: float) -> None:
        while timestamps and now - timestamps[0] >= self.window_seconds:
            timestamps.popleft()

    def record_and_check(self, user_id: int, now: float, policy: GuildPolicy) -> bool:
        """Record a message and report whether the spam limit was reached.

        On a trip the window is emptied, so the next ``spam_limit`` messages
        are needed to trip again.
        """
        key = (int(policy.guild_id), int(user_id))
        timestamps = self._windows.setdefault(key, deque())
        self._evict(timestamps, now)
        timestamps.append(now)

        if len(timestamps) >= policy.auto_mod_spam_limit:
            timestamps.clear()
            return True
        return False

    def count(self, guild_id: int, user_id: int, now: float) -> int:
        """Messages currently inside the window for the key."""
        timestamps = self._windows.get((int(guild_id), int(user_id)))
        if not timestamps:
            return 0
        return sum(1 for ts in timestamps if now - ts < self.window_seconds)

    def prune(self, now: float) -> int:
        """Drop keys whose window has gone idle. Returns keys removed."""
        stale = []
        for key, timestamps in self._windows.items():
            self._evict(timestamps, now)
            if not timestamps:
                stale.append(key)
        for key in stale:
            del self._windows[key]
        if stale:
            logger.debug("[SPAM WINDOW] Pruned %d idle windows", len(stale))
        return len(stale)

    def reset(self) -> None:
        self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

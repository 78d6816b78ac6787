"""
SanctionLedger - the single writer of mute, warning, ban and auto-moderation
audit rows.

The ledger owns no SQL; every statement lives in the repositories. Each
public method runs in its own transaction (or read), so one call is one
atomic unit. Timestamps are unix seconds and ``now`` can be injected for
tests.
"""

from __future__ import annotations

import time
from typing import List, Optional

from modward.database.db_connection import ConnectionManager, db_connection
from modward.datatypes.sanction_datatypes import (
    AutoModLogEntry,
    MuteRecord,
    WarningRecord,
    BanRecord,
)
from modward.repositories.automod_log_repo import AutoModLogRepository
from modward.repositories.ban_repo import BanRepository
from modward.repositories.mute_repo import MuteRepository
from modward.repositories.warning_repo import WarningRepository
from modward.util.logger import get_logger

logger = get_logger("sanction_ledger")


def _now(now: Optional[int]) -> int:
    return int(time.time()) if now is None else int(now)


class SanctionLedger:
    """Facade over the sanction repositories."""

    def __init__(self, connection: ConnectionManager = db_connection) -> None:
        self._connection = connection

    # ------------------------------------------------------------------
    # Mutes
    # ------------------------------------------------------------------

    async def record_mute(
        self,
        guild_id: int,
        user_id: int,
        moderator_id: int,
        reason: str,
        duration_seconds: Optional[int],
        now: Optional[int] = None,
    ) -> MuteRecord:
        """Store a new active mute, replacing any mute still active for the user.

        ``duration_seconds`` of None stores a permanent mute (NULL expiry).
        """
        created_at = _now(now)
        expires_at = None if duration_seconds is None else created_at + int(duration_seconds)

        async with self._connection.transaction() as conn:
            replaced = await MuteRepository.deactivate_active(conn, guild_id, user_id)
            mute_id = await MuteRepository.insert(
                conn, guild_id, user_id, moderator_id, reason, created_at, expires_at
            )

        if replaced:
            logger.debug(
                "[SANCTION LEDGER] Replaced %d active mute(s) for user %s in guild %s",
                replaced, user_id, guild_id,
            )
        logger.info(
            "[SANCTION LEDGER] Mute #%s recorded for user %s in guild %s (expires_at=%s)",
            mute_id, user_id, guild_id, expires_at,
        )
        return MuteRecord(
            id=mute_id,
            guild_id=int(guild_id),
            user_id=int(user_id),
            moderator_id=int(moderator_id),
            reason=reason,
            created_at=created_at,
            expires_at=expires_at,
            active=True,
        )

    async def deactivate_mute(self, guild_id: int, user_id: int) -> int:
        """Mark the user's active mutes inactive. Returns rows changed."""
        async with self._connection.transaction() as conn:
            changed = await MuteRepository.deactivate_active(conn, guild_id, user_id)
        if changed:
            logger.info("[SANCTION LEDGER] Deactivated mute for user %s in guild %s", user_id, guild_id)
        return changed

    async def deactivate_mute_by_id(self, mute_id: int) -> bool:
        """Mark the single mute row ``mute_id`` inactive. False if it already was."""
        async with self._connection.transaction() as conn:
            changed = await MuteRepository.deactivate(conn, mute_id)
        if changed:
            logger.info("[SANCTION LEDGER] Deactivated mute #%s", mute_id)
        return changed > 0

    async def active_mutes(self, guild_id: int) -> List[MuteRecord]:
        async with self._connection.read() as conn:
            return await MuteRepository.get_active_for_guild(conn, guild_id)

    async def active_mute(self, guild_id: int, user_id: int) -> MuteRecord | None:
        async with self._connection.read() as conn:
            return await MuteRepository.get_active(conn, guild_id, user_id)

    async def mute_history(self, guild_id: int, user_id: int) -> List[MuteRecord]:
        async with self._connection.read() as conn:
            return await MuteRepository.history(conn, guild_id, user_id)

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------

    async def add_warning(
        self,
        guild_id: int,
        user_id: int,
        moderator_id: int,
        reason: str,
        now: Optional[int] = None,
    ) -> int:
        """Insert a warning and return the user's total warning count."""
        async with self._connection.transaction() as conn:
            await WarningRepository.insert(conn, guild_id, user_id, moderator_id, reason, _now(now))
            warnings = await WarningRepository.list_for_user(conn, guild_id, user_id)
        logger.info("[SANCTION LEDGER] Warning recorded for user %s in guild %s", user_id, guild_id)
        return len(warnings)

    async def warnings_for(self, guild_id: int, user_id: int) -> List[WarningRecord]:
        async with self._connection.read() as conn:
            return await WarningRepository.list_for_user(conn, guild_id, user_id)

    async def clear_warnings(self, guild_id: int, user_id: int) -> int:
        async with self._connection.transaction() as conn:
            removed = await WarningRepository.clear_for_user(conn, guild_id, user_id)
        logger.info(
            "[SANCTION LEDGER] Cleared %d warning(s) for user %s in guild %s",
            removed, user_id, guild_id,
        )
        return removed

    # ------------------------------------------------------------------
    # Bans
    # ------------------------------------------------------------------

    async def record_ban(
        self,
        guild_id: int,
        user_id: int,
        moderator_id: int,
        reason: str,
        now: Optional[int] = None,
    ) -> int:
        async with self._connection.transaction() as conn:
            return await BanRepository.insert(conn, guild_id, user_id, moderator_id, reason, _now(now))

    async def bans_for(self, guild_id: int, user_id: int) -> List[BanRecord]:
        async with self._connection.read() as conn:
            return await BanRepository.list_for_user(conn, guild_id, user_id)

    # ------------------------------------------------------------------
    # Auto-moderation audit trail
    # ------------------------------------------------------------------

    async def log_automod(
        self,
        guild_id: int,
        user_id: int,
        action: str,
        reason: str,
        now: Optional[int] = None,
    ) -> int:
        async with self._connection.transaction() as conn:
            return await AutoModLogRepository.insert(conn, guild_id, user_id, action, reason, _now(now))

    async def automod_history(
        self, guild_id: int, user_id: int, limit: int = 25
    ) -> List[AutoModLogEntry]:
        async with self._connection.read() as conn:
            return await AutoModLogRepository.list_for_user(conn, guild_id, user_id, limit)

    async def automod_count(self, guild_id: int) -> int:
        async with self._connection.read() as conn:
            return await AutoModLogRepository.count_for_guild(conn, guild_id)


# Shared application-wide ledger
sanction_ledger = SanctionLedger()

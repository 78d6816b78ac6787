"""
Persistent storage for mutes.

Rows are append-only: lifting a mute flips ``active`` to 0 and the row is
kept as audit trail. ``expires_at`` is INTEGER unix seconds, NULL for a
permanent mute.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

import aiosqlite

from modward.datatypes.sanction_datatypes import MuteRecord

_COLUMNS = "id, guild_id, user_id, moderator_id, reason, created_at, expires_at, active"


def _row_to_record(row: Mapping[str, Any]) -> MuteRecord:
    return MuteRecord(
        id=row["id"],
        guild_id=row["guild_id"],
        user_id=row["user_id"],
        moderator_id=row["moderator_id"],
        reason=row["reason"] or "",
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        active=bool(row["active"]),
    )


class MuteRepository:
    """Low-level CRUD for the ``mutes`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    async def insert(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
        moderator_id: int,
        reason: str,
        created_at: int,
        expires_at: Optional[int],
    ) -> int:
        """Insert an active mute row and return its id."""
        cursor = await conn.execute(
            """
            INSERT INTO mutes (guild_id, user_id, moderator_id, reason, created_at, expires_at, active)
            VALUES (?, ?, ?, ?, ?, ?, 1)
            """,
            (int(guild_id), int(user_id), int(moderator_id), reason, created_at, expires_at),
        )
        return cursor.lastrowid

    @staticmethod
    async def deactivate_active(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
    ) -> int:
        """Mark every active mute of the user inactive. Returns rows changed."""
        cursor = await conn.execute(
            "UPDATE mutes SET active = 0 WHERE guild_id = ? AND user_id = ? AND active = 1",
            (int(guild_id), int(user_id)),
        )
        return cursor.rowcount

    @staticmethod
    async def deactivate(conn: aiosqlite.Connection, mute_id: int) -> int:
        """Mark one mute row inactive. Returns 0 if it was already inactive."""
        cursor = await conn.execute(
            "UPDATE mutes SET active = 0 WHERE id = ? AND active = 1",
            (int(mute_id),),
        )
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    async def get_active_for_guild(
        conn: aiosqlite.Connection,
        guild_id: int,
    ) -> List[MuteRecord]:
        """Return all active mutes of a guild, oldest first."""
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM mutes WHERE guild_id = ? AND active = 1 ORDER BY id",
            (int(guild_id),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_record(row) for row in rows]

    @staticmethod
    async def get_active(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
    ) -> MuteRecord | None:
        """Return the user's active mute, if any."""
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM mutes WHERE guild_id = ? AND user_id = ? AND active = 1 "
            "ORDER BY id DESC LIMIT 1",
            (int(guild_id), int(user_id)),
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_record(row) if row is not None else None

    @staticmethod
    async def history(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
    ) -> List[MuteRecord]:
        """Return every mute row of the user, newest first."""
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM mutes WHERE guild_id = ? AND user_id = ? ORDER BY id DESC",
            (int(guild_id), int(user_id)),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_record(row) for row in rows]

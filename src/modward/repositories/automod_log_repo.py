"""Append-only audit trail of auto-moderation actions."""

from __future__ import annotations

from typing import List

import aiosqlite

from modward.datatypes.sanction_datatypes import AutoModLogEntry


class AutoModLogRepository:
    """Low-level access to the ``automod_logs`` table."""

    @staticmethod
    async def insert(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
        action: str,
        reason: str,
        created_at: int,
    ) -> int:
        cursor = await conn.execute(
            "INSERT INTO automod_logs (guild_id, user_id, action, reason, created_at) VALUES (?, ?, ?, ?, ?)",
            (int(guild_id), int(user_id), action, reason, created_at),
        )
        return cursor.lastrowid

    @staticmethod
    async def list_for_user(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
        limit: int = 25,
    ) -> List[AutoModLogEntry]:
        """Return the user's most recent entries, newest first."""
        async with conn.execute(
            "SELECT id, guild_id, user_id, action, reason, created_at FROM automod_logs "
            "WHERE guild_id = ? AND user_id = ? ORDER BY id DESC LIMIT ?",
            (int(guild_id), int(user_id), limit),
        ) as cursor:
            rows = await cursor.fetchall()
        return [
            AutoModLogEntry(
                id=row["id"],
                guild_id=row["guild_id"],
                user_id=row["user_id"],
                action=row["action"],
                reason=row["reason"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    @staticmethod
    async def count_for_guild(conn: aiosqlite.Connection, guild_id: int) -> int:
        async with conn.execute(
            "SELECT COUNT(*) FROM automod_logs WHERE guild_id = ?",
            (int(guild_id),),
        ) as cursor:
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

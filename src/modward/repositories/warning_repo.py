"""Low-level CRUD for the ``warnings`` table."""

from __future__ import annotations

from typing import List

import aiosqlite

from modward.datatypes.sanction_datatypes import WarningRecord


class WarningRepository:
    """Warnings are append-only apart from the per-user bulk clear."""

    @staticmethod
    async def insert(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
        moderator_id: int,
        reason: str,
        created_at: int,
    ) -> int:
        cursor = await conn.execute(
            "INSERT INTO warnings (guild_id, user_id, moderator_id, reason, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (int(guild_id), int(user_id), int(moderator_id), reason, created_at),
        )
        return cursor.lastrowid

    @staticmethod
    async def list_for_user(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
    ) -> List[WarningRecord]:
        """Return the user's warnings, newest first."""
        async with conn.execute(
            "SELECT id, guild_id, user_id, moderator_id, reason, created_at FROM warnings "
            "WHERE guild_id = ? AND user_id = ? ORDER BY created_at DESC, id DESC",
            (int(guild_id), int(user_id)),
        ) as cursor:
            rows = await cursor.fetchall()
        return [
            WarningRecord(
                id=row["id"],
                guild_id=row["guild_id"],
                user_id=row["user_id"],
                moderator_id=row["moderator_id"],
                reason=row["reason"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    @staticmethod
    async def clear_for_user(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
    ) -> int:
        """Delete all of the user's warnings in the guild. Returns rows deleted."""
        cursor = await conn.execute(
            "DELETE FROM warnings WHERE guild_id = ? AND user_id = ?",
            (int(guild_id), int(user_id)),
        )
        return cursor.rowcount

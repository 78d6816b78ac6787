"""Low-level CRUD for the ``bans`` table."""

from __future__ import annotations

from typing import List

import aiosqlite

from modward.datatypes.sanction_datatypes import BanRecord


class BanRepository:
    """Append-only ban audit rows."""

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
            "INSERT INTO bans (guild_id, user_id, moderator_id, reason, created_at) VALUES (?, ?, ?, ?, ?)",
            (int(guild_id), int(user_id), int(moderator_id), reason, created_at),
        )
        return cursor.lastrowid

    @staticmethod
    async def list_for_user(
        conn: aiosqlite.Connection,
        guild_id: int,
        user_id: int,
    ) -> List[BanRecord]:
        async with conn.execute(
            "SELECT id, guild_id, user_id, moderator_id, reason, created_at FROM bans "
            "WHERE guild_id = ? AND user_id = ? ORDER BY id DESC",
            (int(guild_id), int(user_id)),
        ) as cursor:
            rows = await cursor.fetchall()
        return [
            BanRecord(
                id=row["id"],
                guild_id=row["guild_id"],
                user_id=row["user_id"],
                moderator_id=row["moderator_id"],
                reason=row["reason"] or "",
                created_at=row["created_at"],
            )
            for row in rows
        ]

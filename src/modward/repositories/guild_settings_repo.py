"""
Repository for the guild_settings table.

Handles only the guild_settings table. Column names used in UPDATE
statements come from :data:`POLICY_COLUMNS`, never from caller input.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

import aiosqlite

from modward.datatypes.discord_datatypes import GuildID
from modward.datatypes.guild_policy import GuildPolicy, POLICY_COLUMNS
from modward.util.logger import get_logger

logger = get_logger("guild_settings_repo")

_SELECT_COLUMNS = """
    guild_id, prefix, ticket_category_id, ticket_log_channel_id,
    mod_log_channel_id, welcome_channel_id, welcome_message,
    moderator_role_id, support_role_id, auto_mod_enabled,
    auto_mod_spam_limit, auto_mod_caps_percent, auto_mod_links_enabled
"""

_BOOL_COLUMNS = frozenset({"auto_mod_enabled", "auto_mod_links_enabled"})


def _row_to_policy(row: Mapping[str, Any]) -> GuildPolicy:
    return GuildPolicy(
        guild_id=GuildID(row["guild_id"]),
        prefix=row["prefix"] or "!",
        ticket_category_id=row["ticket_category_id"],
        ticket_log_channel_id=row["ticket_log_channel_id"],
        mod_log_channel_id=row["mod_log_channel_id"],
        welcome_channel_id=row["welcome_channel_id"],
        welcome_message=row["welcome_message"],
        moderator_role_id=row["moderator_role_id"],
        support_role_id=row["support_role_id"],
        auto_mod_enabled=bool(row["auto_mod_enabled"]),
        auto_mod_spam_limit=int(row["auto_mod_spam_limit"]),
        auto_mod_caps_percent=int(row["auto_mod_caps_percent"]),
        auto_mod_links_enabled=bool(row["auto_mod_links_enabled"]),
    )


class GuildSettingsRepository:
    """CRUD for the guild_settings table only."""

    async def get(
        self, conn: aiosqlite.Connection, guild_id: GuildID
    ) -> GuildPolicy | None:
        """Fetch a single guild's policy row."""
        async with conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM guild_settings WHERE guild_id = ?",
            (int(guild_id),),
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        return _row_to_policy(row)

    async def get_all(
        self, conn: aiosqlite.Connection
    ) -> Dict[GuildID, GuildPolicy]:
        """Fetch every stored policy keyed by guild."""
        async with conn.execute(f"SELECT {_SELECT_COLUMNS} FROM guild_settings") as cursor:
            rows = await cursor.fetchall()

        result: Dict[GuildID, GuildPolicy] = {}
        for row in rows:
            policy = _row_to_policy(row)
            result[policy.guild_id] = policy
        return result

    async def insert_default(
        self, conn: aiosqlite.Connection, guild_id: GuildID, prefix: str = "!"
    ) -> bool:
        """Insert a default row. Returns False if the guild already had one."""
        cursor = await conn.execute(
            "INSERT INTO guild_settings (guild_id, prefix) VALUES (?, ?) "
            "ON CONFLICT(guild_id) DO NOTHING",
            (int(guild_id), prefix),
        )
        return cursor.rowcount > 0

    async def update(
        self, conn: aiosqlite.Connection, guild_id: GuildID, changes: Dict[str, Any]
    ) -> int:
        """Write ``changes`` to the guild's row and return the rows touched.

        Raises:
            ValueError: If a key is not an allow-listed policy column.
        """
        if not changes:
            return 0

        unknown = set(changes) - POLICY_COLUMNS
        if unknown:
            raise ValueError(f"Refusing to update unknown columns: {sorted(unknown)}")

        # Deterministic column order
        columns = sorted(changes)
        set_clause = ", ".join(f"{column} = ?" for column in columns)
        values = [
            (1 if changes[column] else 0) if column in _BOOL_COLUMNS else changes[column]
            for column in columns
        ]
        cursor = await conn.execute(
            f"UPDATE guild_settings SET {set_clause} WHERE guild_id = ?",
            (*values, int(guild_id)),
        )
        logger.debug("[GUILD SETTINGS REPO] Guild %s updated: %s", guild_id, ", ".join(columns))
        return cursor.rowcount

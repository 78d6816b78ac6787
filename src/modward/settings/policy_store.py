"""
Cached access to per-guild moderation policy.

Provides a small API on top of :class:`GuildSettingsRepository`:
- get(guild_id) -> GuildPolicy: cached read, creates the default row if missing
- update(guild_id, GuildPolicyUpdate): validate, persist, refresh cache
- ensure(guild_id): create the default row on guild join
- invalidate(guild_id): drop a cached entry

Writes go through the explicit :class:`GuildPolicyUpdate` structure only, so
no caller can name an arbitrary column.
"""

from __future__ import annotations

import asyncio
from typing import Dict

from modward.configuration.app_configuration import app_config
from modward.database.db_connection import ConnectionManager, db_connection
from modward.datatypes.discord_datatypes import GuildID
from modward.datatypes.guild_policy import GuildPolicy, GuildPolicyUpdate
from modward.repositories.guild_settings_repo import GuildSettingsRepository
from modward.util.logger import get_logger

logger = get_logger("policy_store")


class PolicyStore:
    """Read-through cache of :class:`GuildPolicy` objects."""

    def __init__(
        self,
        connection: ConnectionManager = db_connection,
        default_prefix: str | None = None,
    ) -> None:
        self._connection = connection
        self._default_prefix = default_prefix or app_config.default_prefix
        self._repo = GuildSettingsRepository()
        self._cache: Dict[GuildID, GuildPolicy] = {}
        # Per-guild locks: concurrent guilds don't block each other
        self._per_guild_locks: Dict[GuildID, asyncio.Lock] = {}

    def _lock_for(self, guild_id: GuildID) -> asyncio.Lock:
        if guild_id not in self._per_guild_locks:
            self._per_guild_locks[guild_id] = asyncio.Lock()
        return self._per_guild_locks[guild_id]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, guild_id: GuildID) -> GuildPolicy:
        """Return the guild's policy, inserting a default row the first time."""
        guild_id = GuildID(guild_id)
        cached = self._cache.get(guild_id)
        if cached is not None:
            return cached

        async with self._lock_for(guild_id):
            cached = self._cache.get(guild_id)
            if cached is not None:
                return cached

            async with self._connection.read() as conn:
                policy = await self._repo.get(conn, guild_id)

            if policy is None:
                async with self._connection.transaction() as conn:
                    created = await self._repo.insert_default(conn, guild_id, self._default_prefix)
                    policy = await self._repo.get(conn, guild_id)
                if created:
                    logger.info("[POLICY STORE] Created default policy for guild %s", guild_id)
                if policy is None:
                    policy = GuildPolicy(guild_id=guild_id, prefix=self._default_prefix)

            self._cache[guild_id] = policy
            return policy

    async def ensure(self, guild_id: GuildID) -> GuildPolicy:
        """Make sure a policy row exists for the guild."""
        return await self.get(guild_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def update(self, guild_id: GuildID, update: GuildPolicyUpdate) -> GuildPolicy:
        """Validate and persist ``update``, then return the refreshed policy.

        Raises:
            ValueError: If a value is out of range. Nothing is written.
        """
        guild_id = GuildID(guild_id)
        update.validate()
        changes = update.changes()
        if "prefix" in changes:
            changes["prefix"] = changes["prefix"].strip()

        current = await self.get(guild_id)
        if not changes:
            return current

        async with self._lock_for(guild_id):
            async with self._connection.transaction() as conn:
                await self._repo.update(conn, guild_id, changes)
                refreshed = await self._repo.get(conn, guild_id)

            policy = refreshed if refreshed is not None else current.with_changes(changes)
            self._cache[guild_id] = policy

        logger.info(
            "[POLICY STORE] Updated guild %s: %s",
            guild_id,
            ", ".join(sorted(changes)),
        )
        return policy

    def invalidate(self, guild_id: GuildID) -> None:
        self._cache.pop(GuildID(guild_id), None)


# Shared application-wide policy store
policy_store = PolicyStore()

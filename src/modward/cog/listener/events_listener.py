"""Event listener Cog for Modward.

Handles bot lifecycle and membership events: presence on ready, default
policy rows for new guilds and the welcome message for new members.
"""

from __future__ import annotations

import discord
from discord.ext import commands

from modward.configuration.app_configuration import app_config
from modward.datatypes.guild_policy import GuildPolicy
from modward.settings.policy_store import PolicyStore, policy_store
from modward.util.logger import get_logger

logger = get_logger("events_listener")


def render_welcome(template: str, member: discord.Member) -> str:
    """Fill the ``{user}`` and ``{server}`` placeholders of a welcome message."""
    return template.replace("{user}", member.mention).replace("{server}", member.guild.name)


class EventsListenerCog(commands.Cog):
    """Handles Discord bot lifecycle events."""

    def __init__(self, bot: discord.Bot, store: PolicyStore = policy_store) -> None:
        self.bot = bot
        self.store = store
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        if not self.bot.user:
            logger.warning("[EVENTS LISTENER] Bot partially connected - user info not yet available.")
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.watching, name=app_config.status_text),
        )
        logger.info("Bot connected as %s (ID: %s) in %d guild(s)", self.bot.user, self.bot.user.id, len(self.bot.guilds))

    @commands.Cog.listener(name="on_guild_join")
    async def on_guild_join(self, guild: discord.Guild) -> None:
        """Create the default policy row for a newly joined guild."""
        try:
            await self.store.ensure(guild.id)
        except Exception:
            logger.exception("[EVENTS LISTENER] Failed to create policy for guild %s", guild.id)
            return
        logger.info("[EVENTS LISTENER] Joined guild '%s' (ID: %s)", guild.name, guild.id)

    # ------------------------------------------------------------------
    # Member events
    # ------------------------------------------------------------------

    @commands.Cog.listener(name="on_member_join")
    async def on_member_join(self, member: discord.Member) -> None:
        try:
            policy = await self.store.get(member.guild.id)
        except Exception:
            logger.exception("[EVENTS LISTENER] Failed to load policy for guild %s", member.guild.id)
            return
        await self._send_welcome(member, policy)

    async def _send_welcome(self, member: discord.Member, policy: GuildPolicy) -> bool:
        if policy.welcome_channel_id is None or not policy.welcome_message:
            return False
        channel = member.guild.get_channel(int(policy.welcome_channel_id))
        if channel is None:
            logger.debug("[EVENTS LISTENER] Welcome channel %s not found", policy.welcome_channel_id)
            return False
        try:
            await channel.send(render_welcome(policy.welcome_message, member))
            return True
        except Exception as exc:
            logger.warning("[EVENTS LISTENER] Failed to send welcome message in guild %s: %s", member.guild.id, exc)
            return False


def setup(bot: discord.Bot) -> None:
    bot.add_cog(EventsListenerCog(bot))

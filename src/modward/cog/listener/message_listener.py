"""Message listener Cog for Modward.

Filters incoming messages, loads the guild policy and hands each message to
either the command router or the auto-moderator. Failures are logged here so
one bad message never stops the event loop.
"""

from __future__ import annotations

import time

import discord
from discord.ext import commands, tasks

from modward.cog.commands.moderation_cmds import ModerationCommandsCog
from modward.configuration.app_configuration import app_config
from modward.moderation.automod import AutoModerator
from modward.settings.policy_store import PolicyStore, policy_store
from modward.util.discord_utils import is_ignored_author
from modward.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """
    Thin event listener in front of the command router and the auto-moderator.

    Parameters
    ----------
    bot:
        Discord bot instance.
    router:
        Handles prefixed messages.
    automod:
        Inspects every other guild message.
    """

    def __init__(
        self,
        bot: discord.Bot,
        router: ModerationCommandsCog,
        automod: AutoModerator,
        store: PolicyStore = policy_store,
    ) -> None:
        self.bot = bot
        self.router = router
        self.automod = automod
        self.store = store
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    # ------------------------------------------------------------------
    # Cog lifecycle
    # ------------------------------------------------------------------

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        interval = app_config.window_prune_interval
        self._prune_task.change_interval(seconds=interval)
        if not self._prune_task.is_running():
            self._prune_task.start()

    def cog_unload(self) -> None:
        self._prune_task.cancel()
        self.automod.tracker.reset()

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        if message.guild is None or is_ignored_author(message.author):
            return

        try:
            policy = await self.store.get(message.guild.id)
        except Exception:
            logger.exception("[MESSAGE LISTENER] Failed to load policy for guild %s", message.guild.id)
            return

        if (message.content or "").startswith(policy.prefix):
            if await self.router.dispatch(message, policy):
                return

        try:
            await self.automod.inspect(message, policy)
        except Exception:
            logger.exception("[MESSAGE LISTENER] Auto-moderation failed for message %s", message.id)

    # ------------------------------------------------------------------
    # Window pruning
    # ------------------------------------------------------------------

    @tasks.loop(seconds=300)  # real interval set in on_ready
    async def _prune_task(self) -> None:
        self.automod.tracker.prune(time.monotonic())

    @_prune_task.before_loop
    async def _before_prune(self) -> None:
        await self.bot.wait_until_ready()


def setup(bot: discord.Bot, router: ModerationCommandsCog, automod: AutoModerator) -> None:
    """Register the MessageListenerCog with the bot."""
    bot.add_cog(MessageListenerCog(bot, router, automod))

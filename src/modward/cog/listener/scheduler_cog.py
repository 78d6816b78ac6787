"""Background scheduler cog that lifts expired mutes.

The reconciler polls the ledger on a fixed interval, so mute state survives
restarts without any in-memory schedule.
"""

from __future__ import annotations

import discord
from discord.ext import commands, tasks

from modward.configuration.app_configuration import app_config
from modward.moderation.enforcement import EnforcementActions
from modward.moderation.sanction_ledger import sanction_ledger
from modward.scheduler.mute_reconciler import MuteExpiryReconciler, SweepReport
from modward.util.logger import get_logger

logger = get_logger("scheduler_cog")


class MuteReconcilerCog(commands.Cog):
    """Runs :class:`MuteExpiryReconciler` every ``mute_sweep_interval`` seconds."""

    def __init__(self, bot: discord.Bot, reconciler: MuteExpiryReconciler | None = None) -> None:
        self.bot = bot
        self.reconciler = reconciler if reconciler is not None else MuteExpiryReconciler(
            sanction_ledger, EnforcementActions(sanction_ledger)
        )
        self.last_report: SweepReport | None = None

    # ------------------------------------------------------------------
    # Cog lifecycle
    # ------------------------------------------------------------------

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        interval = app_config.mute_sweep_interval
        self._sweep_task.change_interval(seconds=interval)
        if not self._sweep_task.is_running():
            self._sweep_task.start()
        logger.info("[MUTE_RECONCILER] Ready (sweep interval=%.0fs)", interval)

    def cog_unload(self) -> None:
        self._sweep_task.cancel()
        logger.info("[MUTE_RECONCILER] Stopped")

    # ------------------------------------------------------------------
    # Polling loop
    # ------------------------------------------------------------------

    @tasks.loop(seconds=60)  # real interval set in on_ready
    async def _sweep_task(self) -> None:
        self.last_report = await self.reconciler.run_tick(self.bot.guilds)

    @_sweep_task.before_loop
    async def _before_sweep(self) -> None:
        await self.bot.wait_until_ready()


def setup(bot: discord.Bot) -> None:
    bot.add_cog(MuteReconcilerCog(bot))

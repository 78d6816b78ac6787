"""
Enforcement actions shared by auto-moderation and moderator commands.

Every Discord call is wrapped: failures are logged and turned into an
:class:`ActionResult` with a short user-facing message, never raised. The
ledger is only written after the Discord call succeeded, so a failed action
leaves no partial state behind.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Dict, Optional

import discord

from modward.configuration.app_configuration import app_config
from modward.datatypes.guild_policy import GuildPolicy
from modward.moderation.sanction_ledger import SanctionLedger, sanction_ledger
from modward.util import embeds
from modward.util.discord_utils import safe_delete_message
from modward.util.duration import MAX_TIMEOUT, format_duration
from modward.util.logger import get_logger

logger = get_logger("enforcement")

AUTOMOD_ACTION_DELETE = "delete"


@dataclass(slots=True)
class ActionResult:
    """Outcome of a single enforcement action."""

    ok: bool
    message: str
    record_id: Optional[int] = None


class EnforcementActions:
    """Applies sanctions on Discord and records them in the ledger."""

    def __init__(
        self,
        ledger: SanctionLedger = sanction_ledger,
        notice_delete_seconds: float | None = None,
        colors: Dict[str, int] | None = None,
    ) -> None:
        self.ledger = ledger
        self.notice_delete_seconds = (
            app_config.notice_delete_seconds if notice_delete_seconds is None else notice_delete_seconds
        )
        self.colors = colors if colors is not None else app_config.colors

    # ------------------------------------------------------------------
    # Auto-moderation
    # ------------------------------------------------------------------

    async def suppress_and_notify(self, message: discord.Message, reason: str, policy: GuildPolicy) -> None:
        """
        Remove an offending message and tell everyone who needs to know.

        Deletion is best effort. The audit row is written and the notice is
        sent even when the message is already gone.
        """
        author = message.author
        deleted = await safe_delete_message(message)
        if not deleted:
            logger.debug("[ENFORCEMENT] Message %s was not deleted", message.id)

        try:
            await message.channel.send(
                embed=embeds.automod_notice_embed(author.id, reason, self.colors),
                delete_after=self.notice_delete_seconds,
            )
        except Exception as exc:
            logger.warning("[ENFORCEMENT] Failed to send auto-mod notice in channel %s: %s", message.channel.id, exc)

        await self.ledger.log_automod(policy.guild_id, author.id, AUTOMOD_ACTION_DELETE, reason)

        await self.send_mod_log(
            message.guild,
            policy,
            embeds.automod_log_embed(author.id, message.channel.id, reason, message.content, self.colors),
        )
        logger.info(
            "[ENFORCEMENT] Auto-mod removed message from user %s in guild %s: %s",
            author.id, policy.guild_id, reason,
        )

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------

    async def apply_timeout(
        self,
        member: discord.Member,
        duration: Optional[datetime.timedelta],
        reason: str,
        issuer: Any,
    ) -> ActionResult:
        """
        Time a member out and record the mute.

        A ``duration`` of None is a permanent mute: Discord gets its 28-day
        maximum and the ledger row has no expiry.
        """
        external = duration if duration is not None else MAX_TIMEOUT
        try:
            await member.timeout_for(external, reason=reason)
        except Exception as exc:
            logger.error("[ENFORCEMENT] Failed to time out user %s: %s", member.id, exc)
            return ActionResult(False, "Failed to mute the user.")

        record = await self.ledger.record_mute(
            member.guild.id,
            member.id,
            issuer.id,
            reason,
            None if duration is None else int(duration.total_seconds()),
        )
        return ActionResult(True, f"{member.mention} has been muted ({format_duration(duration)}).", record.id)

    async def lift_timeout(
        self,
        member: discord.Member,
        issuer: Any = None,
        reason: str = "Mute lifted",
        mute_id: Optional[int] = None,
    ) -> ActionResult:
        """Remove a member's timeout and mark their mute inactive.

        With ``mute_id`` only that row is deactivated; otherwise every active
        mute of the member is.
        """
        audit_reason = reason if issuer is None else f"{reason} by {issuer}"
        try:
            await member.remove_timeout(reason=audit_reason)
        except Exception as exc:
            logger.error("[ENFORCEMENT] Failed to remove timeout for user %s: %s", member.id, exc)
            return ActionResult(False, "Failed to unmute the user.")

        if mute_id is None:
            await self.ledger.deactivate_mute(member.guild.id, member.id)
        else:
            await self.ledger.deactivate_mute_by_id(mute_id)
        return ActionResult(True, f"{member.mention} has been unmuted.")

    # ------------------------------------------------------------------
    # Moderator actions
    # ------------------------------------------------------------------

    async def warn(self, member: discord.Member, issuer: Any, reason: str) -> ActionResult:
        """Record a warning. Nothing is sent to Discord except the replies."""
        total = await self.ledger.add_warning(member.guild.id, member.id, issuer.id, reason)
        return ActionResult(True, f"{member.mention} has been warned. Total warnings: {total}")

    async def kick(self, member: discord.Member, issuer: Any, reason: str) -> ActionResult:
        try:
            await member.kick(reason=reason)
        except Exception as exc:
            logger.error("[ENFORCEMENT] Failed to kick user %s: %s", member.id, exc)
            return ActionResult(False, "Failed to kick the user.")
        logger.info("[ENFORCEMENT] User %s kicked from guild %s by %s", member.id, member.guild.id, issuer.id)
        return ActionResult(True, f"{member.mention} has been kicked.")

    async def ban(self, guild: discord.Guild, user: Any, issuer: Any, reason: str) -> ActionResult:
        """Ban a user. The ban row is written only once Discord accepted it."""
        try:
            await guild.ban(user, reason=reason)
        except Exception as exc:
            logger.error("[ENFORCEMENT] Failed to ban user %s: %s", user.id, exc)
            return ActionResult(False, "Failed to ban the user.")
        record_id = await self.ledger.record_ban(guild.id, user.id, issuer.id, reason)
        return ActionResult(True, f"<@{user.id}> has been banned.", record_id)

    async def unban(self, guild: discord.Guild, user_id: int, issuer: Any) -> ActionResult:
        try:
            await guild.unban(discord.Object(id=int(user_id)), reason=f"Unbanned by {issuer}")
        except Exception as exc:
            logger.error("[ENFORCEMENT] Failed to unban user %s: %s", user_id, exc)
            return ActionResult(False, "Failed to unban the user.")
        logger.info("[ENFORCEMENT] User %s unbanned from guild %s", user_id, guild.id)
        return ActionResult(True, f"<@{user_id}> has been unbanned.")

    async def purge(self, channel: Any, amount: int) -> ActionResult:
        """Bulk-delete the last ``amount`` messages plus the command itself."""
        try:
            deleted = await channel.purge(limit=amount + 1)
        except Exception as exc:
            logger.error("[ENFORCEMENT] Failed to purge channel %s: %s", channel.id, exc)
            return ActionResult(False, "Failed to delete messages.")
        count = max(0, len(deleted) - 1)
        return ActionResult(True, f"Deleted {count} messages.")

    # ------------------------------------------------------------------
    # Mod log
    # ------------------------------------------------------------------

    async def send_mod_log(self, guild: Any, policy: GuildPolicy, embed: discord.Embed) -> bool:
        """Post ``embed`` to the guild's mod-log channel, if one is configured."""
        if policy.mod_log_channel_id is None or guild is None:
            return False
        channel = guild.get_channel(int(policy.mod_log_channel_id))
        if channel is None:
            logger.debug("[ENFORCEMENT] Mod-log channel %s not found in guild %s", policy.mod_log_channel_id, guild.id)
            return False
        try:
            await channel.send(embed=embed)
            return True
        except Exception as exc:
            logger.warning("[ENFORCEMENT] Failed to post to mod-log channel %s: %s", channel.id, exc)
            return False

"""
Prefix command router for moderation and configuration commands.

Every command is declared once in :data:`COMMANDS` together with the
permission tag the caller needs. :meth:`ModerationCommandsCog.dispatch` is
the only entry point: it parses the message, checks the tag, runs the
handler and turns any unexpected error into a generic reply so the event
loop keeps going.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

import discord
from discord.ext import commands

from modward.datatypes.discord_datatypes import ChannelID, RoleID, UserID
from modward.datatypes.guild_policy import GuildPolicy, GuildPolicyUpdate
from modward.moderation.enforcement import EnforcementActions
from modward.moderation.sanction_ledger import SanctionLedger, sanction_ledger
from modward.settings.policy_store import PolicyStore, policy_store
from modward.util import embeds
from modward.util.discord_utils import has_permission, resolve_member
from modward.util.duration import format_duration, looks_like_duration, parse_duration
from modward.util.logger import get_logger

logger = get_logger("moderation_commands")

PERMISSION_DENIED = "You do not have permission to use this command."
GENERIC_ERROR = "An error occurred while processing the command."
DEFAULT_REASON = "No reason provided"
PURGE_RANGE = (1, 100)
PURGE_REPLY_SECONDS = 3


@dataclass(slots=True)
class CommandContext:
    """Everything a handler needs for one invocation."""

    cog: "ModerationCommandsCog"
    message: discord.Message
    policy: GuildPolicy
    name: str
    args: List[str] = field(default_factory=list)

    @property
    def author(self) -> Any:
        return self.message.author

    @property
    def guild(self) -> Any:
        return self.message.guild

    @property
    def colors(self) -> Dict[str, int]:
        return self.cog.enforcement.colors

    def rest(self, start: int) -> str:
        """Arguments from ``start`` joined back together."""
        return " ".join(self.args[start:]).strip()

    async def reply(self, content: str | None = None, **kwargs: Any) -> Any:
        return await self.message.reply(content, **kwargs)


Handler = Callable[[CommandContext], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """A command name bound to its handler and required permission tag."""

    handler: Handler
    permission: Optional[str]
    usage: str


# ----------------------------------------------------------------------
# Argument helpers
# ----------------------------------------------------------------------

async def _target_member(ctx: CommandContext) -> Any:
    """The mentioned member, or the member whose ID is the first argument."""
    if ctx.message.mentions:
        mentioned = ctx.message.mentions[0]
        if isinstance(mentioned, discord.Member):
            return mentioned
        return await resolve_member(ctx.guild, mentioned.id)
    if not ctx.args:
        return None
    try:
        user_id = UserID.parse(ctx.args[0])
    except ValueError:
        return None
    return await resolve_member(ctx.guild, int(user_id))


def _target_user_id(ctx: CommandContext) -> Optional[int]:
    """The mentioned user's ID, or the first argument parsed as an ID."""
    if ctx.message.mentions:
        return ctx.message.mentions[0].id
    if not ctx.args:
        return None
    try:
        return int(UserID.parse(ctx.args[0]))
    except ValueError:
        return None


async def _require_member(ctx: CommandContext) -> Any:
    member = await _target_member(ctx)
    if member is None:
        await ctx.reply("Please mention a valid member of this server.")
    return member


# ----------------------------------------------------------------------
# Moderation handlers
# ----------------------------------------------------------------------

async def _warn(ctx: CommandContext) -> None:
    member = await _require_member(ctx)
    if member is None:
        return
    reason = ctx.rest(1) or DEFAULT_REASON
    result = await ctx.cog.enforcement.warn(member, ctx.author, reason)
    await ctx.reply(result.message)
    await ctx.cog.enforcement.send_mod_log(
        ctx.guild,
        ctx.policy,
        embeds.sanction_embed("User Warned", member.id, ctx.author.id, reason, colors=ctx.colors),
    )


async def _warnings(ctx: CommandContext) -> None:
    user_id = _target_user_id(ctx)
    if user_id is None:
        await ctx.reply("Please mention a user.")
        return
    records = await ctx.cog.ledger.warnings_for(ctx.guild.id, user_id)
    if not records:
        await ctx.reply("No warnings found for this user.")
        return
    await ctx.reply(embed=embeds.warnings_embed(f"<@{user_id}>", records, ctx.colors))


async def _clear_warnings(ctx: CommandContext) -> None:
    user_id = _target_user_id(ctx)
    if user_id is None:
        await ctx.reply("Please mention a user.")
        return
    removed = await ctx.cog.ledger.clear_warnings(ctx.guild.id, user_id)
    await ctx.reply(f"Cleared {removed} warning(s) for <@{user_id}>.")


async def _mute(ctx: CommandContext) -> None:
    member = await _require_member(ctx)
    if member is None:
        return

    duration = None
    reason_start = 1
    if len(ctx.args) > 1 and looks_like_duration(ctx.args[1]):
        try:
            duration = parse_duration(ctx.args[1])
        except ValueError as exc:
            await ctx.reply(str(exc))
            return
        reason_start = 2
    reason = ctx.rest(reason_start) or DEFAULT_REASON

    result = await ctx.cog.enforcement.apply_timeout(member, duration, reason, ctx.author)
    await ctx.reply(result.message)
    if result.ok:
        await ctx.cog.enforcement.send_mod_log(
            ctx.guild,
            ctx.policy,
            embeds.sanction_embed(
                "User Muted", member.id, ctx.author.id, reason,
                duration=format_duration(duration), colors=ctx.colors,
            ),
        )


async def _unmute(ctx: CommandContext) -> None:
    member = await _require_member(ctx)
    if member is None:
        return
    result = await ctx.cog.enforcement.lift_timeout(member, issuer=ctx.author)
    await ctx.reply(result.message)
    if result.ok:
        await ctx.cog.enforcement.send_mod_log(
            ctx.guild,
            ctx.policy,
            embeds.sanction_embed("User Unmuted", member.id, ctx.author.id, color="success", colors=ctx.colors),
        )


async def _kick(ctx: CommandContext) -> None:
    member = await _require_member(ctx)
    if member is None:
        return
    reason = ctx.rest(1) or DEFAULT_REASON
    result = await ctx.cog.enforcement.kick(member, ctx.author, reason)
    await ctx.reply(result.message)
    if result.ok:
        await ctx.cog.enforcement.send_mod_log(
            ctx.guild,
            ctx.policy,
            embeds.sanction_embed("User Kicked", member.id, ctx.author.id, reason, color="error", colors=ctx.colors),
        )


async def _ban(ctx: CommandContext) -> None:
    # Users who already left can still be banned by ID
    user_id = _target_user_id(ctx)
    if user_id is None:
        await ctx.reply("Please mention a user or provide a user ID.")
        return
    reason = ctx.rest(1) or DEFAULT_REASON
    result = await ctx.cog.enforcement.ban(ctx.guild, discord.Object(id=user_id), ctx.author, reason)
    await ctx.reply(result.message)
    if result.ok:
        await ctx.cog.enforcement.send_mod_log(
            ctx.guild,
            ctx.policy,
            embeds.sanction_embed("User Banned", user_id, ctx.author.id, reason, color="error", colors=ctx.colors),
        )


async def _unban(ctx: CommandContext) -> None:
    user_id = _target_user_id(ctx)
    if user_id is None:
        await ctx.reply("Please provide a valid user ID.")
        return
    result = await ctx.cog.enforcement.unban(ctx.guild, user_id, ctx.author)
    await ctx.reply(result.message)
    if result.ok:
        await ctx.cog.enforcement.send_mod_log(
            ctx.guild,
            ctx.policy,
            embeds.sanction_embed("User Unbanned", user_id, ctx.author.id, color="success", colors=ctx.colors),
        )


async def _purge(ctx: CommandContext) -> None:
    low, high = PURGE_RANGE
    try:
        amount = int(ctx.args[0]) if ctx.args else 0
    except ValueError:
        amount = 0
    if not low <= amount <= high:
        await ctx.reply(f"Please provide a number between {low} and {high}.")
        return

    result = await ctx.cog.enforcement.purge(ctx.message.channel, amount)
    if result.ok:
        # The command message itself is gone, so post instead of replying
        await ctx.message.channel.send(result.message, delete_after=PURGE_REPLY_SECONDS)
    else:
        await ctx.reply(result.message)


# ----------------------------------------------------------------------
# Configuration handlers
# ----------------------------------------------------------------------

async def _apply_update(ctx: CommandContext, update: GuildPolicyUpdate, success: str) -> None:
    try:
        ctx.policy = await ctx.cog.store.update(ctx.guild.id, update)
    except ValueError as exc:
        await ctx.reply(str(exc))
        return
    await ctx.reply(success)


async def _set_prefix(ctx: CommandContext) -> None:
    if not ctx.args:
        await ctx.reply("Please provide a valid prefix (max 5 characters).")
        return
    prefix = ctx.args[0]
    await _apply_update(ctx, GuildPolicyUpdate(prefix=prefix), f"Prefix changed to `{prefix}`")


async def _set_welcome(ctx: CommandContext) -> None:
    # Taken from the raw content so line breaks and spacing survive
    parts = (ctx.message.content or "")[len(ctx.policy.prefix):].split(None, 1)
    template = parts[1].strip() if len(parts) > 1 else ""
    if not template:
        await ctx.reply(f"Usage: `{ctx.policy.prefix}setwelcome <message>` ({{user}} and {{server}} are filled in)")
        return
    await _apply_update(ctx, GuildPolicyUpdate(welcome_message=template), "Welcome message updated.")


async def _setup(ctx: CommandContext) -> None:
    await ctx.reply(embed=embeds.setup_embed(ctx.policy.prefix, ctx.colors))


async def _help(ctx: CommandContext) -> None:
    await ctx.reply(embed=embeds.help_embed(ctx.policy.prefix, ctx.colors))


def _parse_toggle(value: str) -> Optional[bool]:
    return {"on": True, "enable": True, "off": False, "disable": False}.get(value.lower())


async def _automod(ctx: CommandContext) -> None:
    sub = ctx.args[0].lower() if ctx.args else "status"
    value = ctx.args[1] if len(ctx.args) > 1 else ""

    if sub == "status":
        await ctx.reply(embed=embeds.automod_status_embed(ctx.policy, ctx.colors))
        return

    toggle = _parse_toggle(sub)
    if toggle is not None:
        await _apply_update(
            ctx,
            GuildPolicyUpdate(auto_mod_enabled=toggle),
            f"Auto-moderation {'enabled' if toggle else 'disabled'}.",
        )
        return

    if sub in ("spam", "caps"):
        try:
            number = int(value.rstrip("%"))
        except ValueError:
            await ctx.reply(f"Usage: `{ctx.policy.prefix}automod {sub} <number>`")
            return
        if sub == "spam":
            update = GuildPolicyUpdate(auto_mod_spam_limit=number)
            success = f"Spam limit set to {number} messages."
        else:
            update = GuildPolicyUpdate(auto_mod_caps_percent=number)
            success = f"Caps threshold set to {number}%."
        await _apply_update(ctx, update, success)
        return

    if sub == "links":
        toggle = _parse_toggle(value)
        if toggle is None:
            await ctx.reply(f"Usage: `{ctx.policy.prefix}automod links on|off`")
            return
        await _apply_update(
            ctx,
            GuildPolicyUpdate(auto_mod_links_enabled=toggle),
            f"Link filter {'enabled' if toggle else 'disabled'}.",
        )
        return

    await ctx.reply(f"Usage: `{ctx.policy.prefix}automod on|off|status|spam <n>|caps <percent>|links on|off`")


CHANNEL_SETTINGS = {
    "modlog": "mod_log_channel_id",
    "ticketlog": "ticket_log_channel_id",
    "welcome": "welcome_channel_id",
}

ROLE_SETTINGS = {
    "moderator": "moderator_role_id",
    "support": "support_role_id",
}


def _mentioned_id(ctx: CommandContext, kind: Type[ChannelID] | Type[RoleID]) -> Optional[int]:
    """The second argument as a channel or role ID, accepting the mention form."""
    if len(ctx.args) < 2:
        return None
    try:
        return int(kind.parse(ctx.args[1]))
    except ValueError:
        return None


async def _set_channel(ctx: CommandContext) -> None:
    kind = ctx.args[0].lower() if ctx.args else ""
    column = CHANNEL_SETTINGS.get(kind)
    if column is None:
        await ctx.reply(f"Usage: `{ctx.policy.prefix}setchannel modlog|ticketlog|welcome #channel`")
        return

    if ctx.message.channel_mentions:
        channel_id = ctx.message.channel_mentions[0].id
    else:
        channel_id = _mentioned_id(ctx, ChannelID)
    if channel_id is None:
        await ctx.reply("Please mention a channel.")
        return

    await _apply_update(ctx, GuildPolicyUpdate(**{column: channel_id}), f"{kind} channel set to <#{channel_id}>.")


async def _set_role(ctx: CommandContext) -> None:
    kind = ctx.args[0].lower() if ctx.args else ""
    column = ROLE_SETTINGS.get(kind)
    if column is None:
        await ctx.reply(f"Usage: `{ctx.policy.prefix}setrole moderator|support @role`")
        return

    if ctx.message.role_mentions:
        role_id = ctx.message.role_mentions[0].id
    else:
        role_id = _mentioned_id(ctx, RoleID)
    if role_id is None:
        await ctx.reply("Please mention a role.")
        return

    await _apply_update(ctx, GuildPolicyUpdate(**{column: role_id}), f"{kind} role set to <@&{role_id}>.")


COMMANDS: Dict[str, CommandSpec] = {
    "warn": CommandSpec(_warn, "moderate", "warn @user [reason]"),
    "warnings": CommandSpec(_warnings, "moderate", "warnings @user"),
    "clearwarnings": CommandSpec(_clear_warnings, "moderate", "clearwarnings @user"),
    "mute": CommandSpec(_mute, "moderate", "mute @user [10m|2h|1d] [reason]"),
    "unmute": CommandSpec(_unmute, "moderate", "unmute @user"),
    "kick": CommandSpec(_kick, "kick", "kick @user [reason]"),
    "ban": CommandSpec(_ban, "ban", "ban @user [reason]"),
    "unban": CommandSpec(_unban, "ban", "unban <user id>"),
    "purge": CommandSpec(_purge, "manage_messages", "purge <1-100>"),
    "setprefix": CommandSpec(_set_prefix, "administrator", "setprefix <prefix>"),
    "setwelcome": CommandSpec(_set_welcome, "administrator", "setwelcome <message>"),
    "setup": CommandSpec(_setup, "administrator", "setup"),
    "automod": CommandSpec(_automod, "administrator", "automod on|off|status|spam <n>|caps <percent>|links on|off"),
    "setchannel": CommandSpec(_set_channel, "administrator", "setchannel modlog|ticketlog|welcome #channel"),
    "setrole": CommandSpec(_set_role, "administrator", "setrole moderator|support @role"),
    "help": CommandSpec(_help, None, "help"),
}


class ModerationCommandsCog(commands.Cog):
    """Routes prefixed guild messages to the handlers in :data:`COMMANDS`."""

    def __init__(
        self,
        bot: discord.Bot,
        store: PolicyStore = policy_store,
        ledger: SanctionLedger = sanction_ledger,
        enforcement: EnforcementActions | None = None,
    ) -> None:
        self.bot = bot
        self.store = store
        self.ledger = ledger
        self.enforcement = enforcement or EnforcementActions(ledger)
        logger.info("[MODERATION CMDS] Moderation commands cog loaded")

    @staticmethod
    def parse(content: str, prefix: str) -> Optional[tuple[str, List[str]]]:
        """Split ``content`` into (command name, args), or None if not a command."""
        if not content.startswith(prefix):
            return None
        parts = content[len(prefix):].split()
        if not parts:
            return None
        return parts[0].lower(), parts[1:]

    async def dispatch(self, message: discord.Message, policy: GuildPolicy) -> bool:
        """Run the command in ``message``. Returns False if it is not a known command."""
        parsed = self.parse(message.content or "", policy.prefix)
        if parsed is None:
            return False
        name, args = parsed
        spec = COMMANDS.get(name)
        if spec is None:
            return False

        ctx = CommandContext(cog=self, message=message, policy=policy, name=name, args=args)
        try:
            if not has_permission(message.author, spec.permission):
                await ctx.reply(PERMISSION_DENIED)
                return True
            await spec.handler(ctx)
        except Exception:
            logger.exception("[MODERATION CMDS] Command %r failed in guild %s", name, policy.guild_id)
            try:
                await ctx.reply(GENERIC_ERROR)
            except Exception as exc:
                logger.warning("[MODERATION CMDS] Could not send error reply: %s", exc)
        return True


def setup(bot: discord.Bot, enforcement: EnforcementActions | None = None) -> ModerationCommandsCog:
    """Register the command router and return it so the message listener can share it."""
    router = ModerationCommandsCog(bot, enforcement=enforcement)
    bot.add_cog(router)
    return router

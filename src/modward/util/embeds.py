"""
Embed builders for moderation notices and the mod-log channel.

Colours come from the application configuration so every embed follows the
same scheme.
"""

from __future__ import annotations

import datetime
from typing import Dict, Iterable, Optional

import discord

from modward.configuration.app_configuration import DEFAULT_COLORS
from modward.datatypes.sanction_datatypes import WarningRecord

# Discord rejects field values longer than 1024 characters
MAX_FIELD_CONTENT = 1000


def _color(colors: Optional[Dict[str, int]], name: str) -> int:
    scheme = colors or DEFAULT_COLORS
    return scheme.get(name, DEFAULT_COLORS[name])


def _truncate(text: str, limit: int = MAX_FIELD_CONTENT) -> str:
    if not text:
        return "*(empty)*"
    return text if len(text) <= limit else text[: limit - 3] + "..."


def automod_notice_embed(author_id: int, reason: str, colors: Optional[Dict[str, int]] = None) -> discord.Embed:
    """Short notice shown in the channel after a message was removed."""
    return discord.Embed(
        title="Auto-Moderation",
        description=f"<@{author_id}>, your message was deleted: {reason}",
        color=_color(colors, "warning"),
    )


def automod_log_embed(
    author_id: int,
    channel_id: int,
    reason: str,
    content: str,
    colors: Optional[Dict[str, int]] = None,
) -> discord.Embed:
    embed = discord.Embed(
        title="Auto-Mod Action",
        color=_color(colors, "warning"),
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.add_field(name="User", value=f"<@{author_id}>", inline=True)
    embed.add_field(name="Channel", value=f"<#{channel_id}>", inline=True)
    embed.add_field(name="Reason", value=reason, inline=True)
    embed.add_field(name="Message", value=_truncate(content), inline=False)
    return embed


def sanction_embed(
    title: str,
    user_id: int,
    moderator_id: int,
    reason: Optional[str] = None,
    duration: Optional[str] = None,
    color: str = "warning",
    colors: Optional[Dict[str, int]] = None,
) -> discord.Embed:
    """Mod-log entry for a moderator action (warn, mute, kick, ban, ...)."""
    embed = discord.Embed(
        title=title,
        color=_color(colors, color),
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.add_field(name="User", value=f"<@{user_id}>", inline=True)
    embed.add_field(name="Moderator", value=f"<@{moderator_id}>", inline=True)
    if duration is not None:
        embed.add_field(name="Duration", value=duration, inline=True)
    if reason:
        embed.add_field(name="Reason", value=_truncate(reason), inline=False)
    return embed


def warnings_embed(
    user_label: str,
    warnings: Iterable[WarningRecord],
    colors: Optional[Dict[str, int]] = None,
) -> discord.Embed:
    lines = [
        f"**{index}.** {warning.reason} - <@{warning.moderator_id}> (<t:{warning.created_at}:R>)"
        for index, warning in enumerate(warnings, start=1)
    ]
    return discord.Embed(
        title=f"Warnings for {user_label}",
        description=_truncate("\n".join(lines), 4000),
        color=_color(colors, "warning"),
    )


def help_embed(prefix: str, colors: Optional[Dict[str, int]] = None) -> discord.Embed:
    embed = discord.Embed(
        title="Modward - Help",
        description="Here are all available commands:",
        color=_color(colors, "primary"),
    )
    embed.add_field(
        name="Moderation",
        value=(
            f"`{prefix}warn`, `{prefix}warnings`, `{prefix}clearwarnings`, `{prefix}mute`, "
            f"`{prefix}unmute`, `{prefix}kick`, `{prefix}ban`, `{prefix}unban`, `{prefix}purge`"
        ),
        inline=False,
    )
    embed.add_field(
        name="Configuration",
        value=(
            f"`{prefix}setprefix`, `{prefix}setup`, `{prefix}automod`, "
            f"`{prefix}setchannel`, `{prefix}setrole`, `{prefix}setwelcome`"
        ),
        inline=False,
    )
    embed.add_field(name="Usage", value=f"`{prefix}mute @user 10m reason` (m, h or d, max 28d)", inline=False)
    return embed


def setup_embed(prefix: str, colors: Optional[Dict[str, int]] = None) -> discord.Embed:
    embed = discord.Embed(
        title="Bot Setup Commands",
        description="Use these commands to configure the bot:",
        color=_color(colors, "primary"),
    )
    embed.add_field(name="Prefix", value=f"`{prefix}setprefix <prefix>` - Change the command prefix", inline=False)
    embed.add_field(
        name="Channels",
        value=f"`{prefix}setchannel modlog|ticketlog|welcome #channel`",
        inline=False,
    )
    embed.add_field(name="Roles", value=f"`{prefix}setrole moderator|support @role`", inline=False)
    embed.add_field(
        name="Welcome",
        value=f"`{prefix}setwelcome <message>` - Greeting posted in the welcome channel, "
        "`{user}` and `{server}` are filled in",
        inline=False,
    )
    embed.add_field(
        name="Auto-Moderation",
        value=f"`{prefix}automod on|off|status`, `{prefix}automod spam <n>`, "
        f"`{prefix}automod caps <percent>`, `{prefix}automod links on|off`",
        inline=False,
    )
    return embed


def automod_status_embed(policy, colors: Optional[Dict[str, int]] = None) -> discord.Embed:
    embed = discord.Embed(title="Auto-Moderation Settings", color=_color(colors, "primary"))
    embed.add_field(name="Enabled", value="Yes" if policy.auto_mod_enabled else "No", inline=True)
    embed.add_field(name="Spam limit", value=f"{policy.auto_mod_spam_limit} messages", inline=True)
    embed.add_field(name="Caps threshold", value=f"{policy.auto_mod_caps_percent}%", inline=True)
    embed.add_field(name="Link filter", value="On" if policy.auto_mod_links_enabled else "Off", inline=True)
    return embed

"""
discord_utils.py
================

Stateless Discord helpers: permission checks by tag, the exemption rule used
by auto-moderation, and safe message deletion.
"""

from __future__ import annotations

from typing import Any, Optional

import discord

from modward.util.logger import get_logger

logger = get_logger("discord_utils")

# Permission tag -> discord.Permissions attribute
PERMISSION_TAGS = {
    "moderate": "moderate_members",
    "kick": "kick_members",
    "ban": "ban_members",
    "manage_messages": "manage_messages",
    "administrator": "administrator",
}


def has_permission(member: Any, tag: Optional[str]) -> bool:
    """
    Check whether a member holds the permission named by ``tag``.

    Administrators pass every check. A tag of None means no permission is
    required.

    Raises:
        KeyError: If the tag is unknown.
    """
    if tag is None:
        return True
    attribute = PERMISSION_TAGS[tag]
    perms = getattr(member, "guild_permissions", None)
    if perms is None:
        return False
    if getattr(perms, "administrator", False):
        return True
    return bool(getattr(perms, attribute, False))


def is_exempt(member: Any, moderator_role_id: Optional[int]) -> bool:
    """
    Authors that bypass auto-moderation: administrators, members who can
    moderate, and holders of the guild's moderator role.
    """
    perms = getattr(member, "guild_permissions", None)
    if perms is not None and (
        getattr(perms, "administrator", False) or getattr(perms, "moderate_members", False)
    ):
        return True
    if moderator_role_id is not None:
        return any(getattr(role, "id", None) == int(moderator_role_id) for role in getattr(member, "roles", []))
    return False


def is_ignored_author(author: Any) -> bool:
    """Bots never go through moderation."""
    return bool(getattr(author, "bot", False))


async def safe_delete_message(message: discord.Message) -> bool:
    """
    Attempt to delete a Discord message, suppressing recoverable errors.

    Returns:
        bool: True if deletion succeeded, False otherwise.
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        return False
    except discord.Forbidden:
        logger.warning("No permission to delete message %s", message.id)
    except discord.HTTPException as exc:
        logger.error("Error deleting message %s: %s", message.id, exc)
    return False


async def resolve_member(guild: Any, user_id: int) -> Any:
    """Return the guild member for ``user_id`` or None if they are gone."""
    member = guild.get_member(int(user_id)) if hasattr(guild, "get_member") else None
    if member is not None:
        return member
    try:
        return await guild.fetch_member(int(user_id))
    except discord.NotFound:
        return None

"""
Auto-moderation engine: ties the spam window, the content detector and
enforcement together for one incoming message.
"""

from __future__ import annotations

import time
from typing import Optional

import discord

from modward.configuration.app_configuration import app_config
from modward.datatypes.detection_rules import DetectionRules
from modward.datatypes.guild_policy import GuildPolicy
from modward.datatypes.sanction_datatypes import ViolationKind
from modward.moderation.enforcement import EnforcementActions
from modward.moderation.spam_window import SpamWindowTracker
from modward.moderation.violation_detector import classify
from modward.util.discord_utils import is_exempt, is_ignored_author
from modward.util.logger import get_logger

logger = get_logger("automod")


class AutoModerator:
    """Inspects guild messages and enforces the guild's auto-mod policy.

    Owns its :class:`SpamWindowTracker`, so windows are scoped to this
    instance and dropped with it.
    """

    def __init__(
        self,
        enforcement: EnforcementActions,
        tracker: SpamWindowTracker | None = None,
        rules: DetectionRules | None = None,
    ) -> None:
        self.enforcement = enforcement
        self.tracker = tracker if tracker is not None else SpamWindowTracker(app_config.spam_window_seconds)
        self.rules = rules if rules is not None else app_config.detection_rules

    async def inspect(
        self,
        message: discord.Message,
        policy: GuildPolicy,
        now: Optional[float] = None,
    ) -> Optional[ViolationKind]:
        """Classify ``message`` and enforce on a hit. Returns the violation."""
        if not policy.auto_mod_enabled:
            return None
        author = message.author
        if is_ignored_author(author):
            return None
        # Exempt authors skip the window as well as the content checks
        if is_exempt(author, policy.moderator_role_id):
            return None

        now = time.monotonic() if now is None else now
        spam_tripped = self.tracker.record_and_check(author.id, now, policy)
        violation = classify(
            message.content or "",
            False,
            policy,
            spam_tripped=spam_tripped,
            rules=self.rules,
        )
        if violation is None:
            return None

        logger.debug(
            "[AUTOMOD] %s from user %s in guild %s",
            violation, author.id, policy.guild_id,
        )
        await self.enforcement.suppress_and_notify(message, violation.reason, policy)
        return violation

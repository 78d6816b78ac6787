"""
Pure content classification for auto-moderation.

``classify`` never touches Discord or the database; the caller decides what
to do with the returned :class:`ViolationKind`. Rate-based spam is tracked by
:mod:`modward.moderation.spam_window` and handed in as ``spam_tripped``.
"""

from __future__ import annotations

import re
from typing import Optional

from modward.datatypes.detection_rules import DEFAULT_RULES, DetectionRules
from modward.datatypes.guild_policy import GuildPolicy
from modward.datatypes.sanction_datatypes import ViolationKind

URL_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)

UPPERCASE_PATTERN = re.compile(r"[A-Z]")
LETTER_PATTERN = re.compile(r"[A-Za-z]")

STRICT_DOMAINS = ("bit.ly", "tinyurl", "discord.gg", "twitch.tv", "youtube.com")
STRICT_DOMAIN_PATTERN = re.compile(
    "|".join(re.escape(domain) for domain in STRICT_DOMAINS),
    re.IGNORECASE,
)


def caps_ratio(text: str, rules: DetectionRules = DEFAULT_RULES) -> float:
    """Percentage of uppercase ASCII letters in ``text`` (0-100).

    Only ``A-Z`` and ``a-z`` count as letters. With the ``letters`` base,
    text without any of them has a ratio of 0.
    """
    uppercase = len(UPPERCASE_PATTERN.findall(text))
    if rules.caps_ratio_base == "characters":
        base = len(text)
    else:
        base = len(LETTER_PATTERN.findall(text))
    if base == 0:
        return 0.0
    return uppercase * 100 / base


def check_caps(text: str, threshold_percent: int, rules: DetectionRules = DEFAULT_RULES) -> bool:
    """Return True if ``text`` is shouting.

    Text shorter than ``rules.caps_min_length`` never trips, whatever the
    threshold.
    """
    if len(text) < rules.caps_min_length:
        return False
    ratio = caps_ratio(text, rules)
    if ratio == 0:
        return False
    if rules.caps_inclusive:
        return ratio >= threshold_percent
    return ratio > threshold_percent


def check_links(text: str, rules: DetectionRules = DEFAULT_RULES) -> bool:
    if URL_PATTERN.search(text):
        return True
    if rules.link_mode == "strict":
        return STRICT_DOMAIN_PATTERN.search(text) is not None
    return False


def classify(
    message_text: str,
    author_is_exempt: bool,
    policy: GuildPolicy,
    *,
    spam_tripped: bool = False,
    rules: DetectionRules = DEFAULT_RULES,
) -> Optional[ViolationKind]:
    """Classify a message against the guild policy.

    Order is spam, caps, links; the first match wins.

    Args:
        message_text: Raw message content.
        author_is_exempt: Exempt authors never produce a violation.
        policy: The guild's policy (thresholds and toggles).
        spam_tripped: Result of the spam window for this message.
        rules: Process-wide content-check settings.

    Returns:
        The violation, or None if the message is clean.
    """
    if author_is_exempt:
        return None
    if spam_tripped:
        return ViolationKind.SPAM

    text = message_text or ""
    if check_caps(text, policy.auto_mod_caps_percent, rules):
        return ViolationKind.CAPS
    if policy.auto_mod_links_enabled and check_links(text, rules):
        return ViolationKind.LINK
    return None

"""
Process-wide knobs for the content checks of the violation detector.

Per-guild thresholds live on :class:`GuildPolicy`; these settings decide
*how* the thresholds are applied and are the same for every guild.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DetectionRules:
    """Content-check settings.

    Attributes:
        caps_min_length: Messages shorter than this are never caps-flagged.
        caps_ratio_base: ``"letters"`` divides uppercase count by the number
            of ASCII letters, ``"characters"`` by the full message length.
        caps_inclusive: When True the ratio trips at the threshold
            (``>=``); otherwise it has to exceed it (``>``).
        link_mode: ``"basic"`` flags any http(s) URL, ``"strict"`` also
            flags bare shortener, invite and streaming domains.
    """

    caps_min_length: int = 5
    caps_ratio_base: str = "letters"
    caps_inclusive: bool = False
    link_mode: str = "basic"


DEFAULT_RULES = DetectionRules()

"""
Process-wide settings read from ``config/app_config.yml``.

Per-guild policy lives in the database; this file only carries what is the
same for every guild: the fallback prefix, the database location, the
auto-moderation tuning knobs, the sweep intervals and the embed colours.
Every property has a default so the bot still starts with an empty or
unreadable file.
"""

from __future__ import annotations

import fcntl
from pathlib import Path
from typing import Any, Dict

import yaml

from modward.datatypes.detection_rules import DetectionRules
from modward.util.logger import get_logger

logger = get_logger("app_configuration")

CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_COLORS: Dict[str, int] = {
    "primary": 0x5865F2,
    "success": 0x57F287,
    "warning": 0xFEE75C,
    "error": 0xED4245,
}


def read_yaml_mapping(path: Path) -> Dict[str, Any]:
    """Parse ``path`` under a shared ``flock`` and return its top-level mapping.

    Any failure is logged and yields an empty dict.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_SH)
            try:
                loaded = yaml.safe_load(handle)
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    except FileNotFoundError:
        logger.error("[APP CONFIGURATION] %s does not exist, using defaults", path)
        return {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error("[APP CONFIGURATION] Could not read %s: %s", path, exc)
        return {}

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        logger.error("[APP CONFIGURATION] %s must hold a mapping, got %s", path, type(loaded).__name__)
        return {}
    return loaded


class AppConfig:
    """Typed, defaulted view over the YAML settings file."""

    def __init__(self, config_path: Path) -> None:
        self.config_path = Path(config_path)
        self._data: Dict[str, Any] = {}
        self.reload()

    def reload(self) -> Dict[str, Any]:
        self._data = read_yaml_mapping(self.config_path)
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        return self._data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name)
        return section if isinstance(section, dict) else {}

    @property
    def default_prefix(self) -> str:
        """Command prefix used by guilds that never changed theirs."""
        return str(self._section("bot").get("default_prefix") or "!")

    @property
    def status_text(self) -> str:
        return str(self._section("bot").get("status_text") or "!help for commands")

    @property
    def database_path(self) -> Path:
        """Location of the SQLite database file."""
        raw = self._section("database").get("path") or "./data/app.db"
        return Path(str(raw)).resolve()

    @property
    def spam_window_seconds(self) -> float:
        """Length of the sliding window used for rate-based spam detection."""
        return float(self._section("automod").get("spam_window_seconds", 5.0))

    @property
    def detection_rules(self) -> DetectionRules:
        """Content-check knobs for the violation detector.

        Unknown ``caps_ratio_base`` or ``link_mode`` values fall back to the
        defaults with a warning instead of failing startup.
        """
        automod = self._section("automod")
        ratio_base = str(automod.get("caps_ratio_base", "letters")).lower()
        if ratio_base not in ("letters", "characters"):
            logger.warning("[APP CONFIGURATION] Unknown caps_ratio_base %r, using 'letters'", ratio_base)
            ratio_base = "letters"
        link_mode = str(automod.get("link_mode", "basic")).lower()
        if link_mode not in ("basic", "strict"):
            logger.warning("[APP CONFIGURATION] Unknown link_mode %r, using 'basic'", link_mode)
            link_mode = "basic"
        return DetectionRules(
            caps_min_length=int(automod.get("caps_min_length", 5)),
            caps_ratio_base=ratio_base,
            caps_inclusive=bool(automod.get("caps_inclusive", False)),
            link_mode=link_mode,
        )

    @property
    def notice_delete_seconds(self) -> float:
        """How long the auto-moderation notice stays in the channel."""
        return float(self._section("automod").get("notice_delete_seconds", 5.0))

    @property
    def window_prune_interval(self) -> float:
        return float(self._section("automod").get("window_prune_interval_seconds", 300.0))

    @property
    def mute_sweep_interval(self) -> float:
        """Seconds between two mute-expiry reconciliation sweeps."""
        return float(self._section("mutes").get("sweep_interval_seconds", 60.0))

    @property
    def colors(self) -> Dict[str, int]:
        """Embed colour scheme, merged over the built-in defaults."""
        merged = dict(DEFAULT_COLORS)
        for name, value in self._section("colors").items():
            try:
                merged[str(name)] = int(value)
            except (TypeError, ValueError):
                logger.warning("[APP CONFIGURATION] Ignoring invalid colour %s=%r", name, value)
        return merged


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)

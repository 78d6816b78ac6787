"""
Modward entry point.

Startup order: resolve the working directory, read ``.env``, open the
database, build the bot with its cogs and connect. Shutdown runs in reverse
whatever happened, and the process exit code reports whether startup or the
gateway session failed.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Directory holding ``config/``, ``data/``, ``logs/`` and ``.env``.

    ``MODWARD_HOME`` wins when set. A frozen build uses the directory of its
    executable; a source checkout uses the repository root.
    """
    home = os.getenv("MODWARD_HOME")
    if home:
        return Path(home).resolve()
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


# Relative config and data paths below resolve against this directory
BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio  # noqa: E402

import discord  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from modward.configuration.app_configuration import app_config  # noqa: E402
from modward.database.database import database  # noqa: E402
from modward.moderation.automod import AutoModerator  # noqa: E402
from modward.moderation.enforcement import EnforcementActions  # noqa: E402
from modward.moderation.sanction_ledger import sanction_ledger  # noqa: E402
from modward.util.logger import get_logger, handle_exception  # noqa: E402

logger = get_logger("main")

TOKEN_ENV_VAR = "DISCORD_BOT_TOKEN"


class StartupError(RuntimeError):
    """Raised when the bot cannot be brought up."""


def load_environment() -> str:
    """Read ``BASE_DIR/.env`` and return the bot token.

    Raises:
        StartupError: If no token is configured.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = (os.getenv(TOKEN_ENV_VAR) or "").strip()
    if not token:
        raise StartupError(f"{TOKEN_ENV_VAR} is not set; add it to {BASE_DIR / '.env'} or the environment")
    return token


def build_intents() -> discord.Intents:
    # Prefix commands need message content; welcomes and mute lifts need members
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.message_content = True
    intents.members = True
    return intents


def load_cogs(bot: discord.Bot) -> None:
    """Attach the command router, the listeners and the mute sweep to ``bot``.

    Commands and auto-moderation share one :class:`EnforcementActions` so
    both write through the same ledger.
    """
    from modward.cog.commands import moderation_cmds
    from modward.cog.listener import events_listener, message_listener, scheduler_cog

    enforcement = EnforcementActions(sanction_ledger)
    router = moderation_cmds.setup(bot, enforcement)
    events_listener.setup(bot)
    message_listener.setup(bot, router, AutoModerator(enforcement))
    scheduler_cog.setup(bot)
    logger.info("Loaded cogs: %s", ", ".join(bot.cogs))


def create_bot() -> discord.Bot:
    bot = discord.Bot(intents=build_intents())
    load_cogs(bot)
    return bot


async def shutdown_runtime(bot: discord.Bot | None = None) -> None:
    """Disconnect from Discord, then close the database. Errors are logged."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception:
            logger.exception("Closing the Discord client failed")
    try:
        await database.shutdown()
    except Exception:
        logger.exception("Closing the database failed")
    logger.info("Shutdown complete")


async def async_main() -> int:
    token = load_environment()

    if not await database.initialize(app_config.database_path):
        logger.critical("Database at %s could not be opened", app_config.database_path)
        return 1

    bot = None
    try:
        bot = create_bot()
        logger.info("Connecting to Discord")
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Bot task cancelled")
        return 0
    except Exception as exc:
        logger.critical("Bot stopped with an error: %s", exc)
        return 1
    finally:
        await shutdown_runtime(bot)
    return 0


def main() -> int:
    """Console entry point; returns the process exit code."""
    sys.excepthook = handle_exception
    logger.info("Starting Modward from %s", BASE_DIR)
    try:
        return asyncio.run(async_main())
    except StartupError as exc:
        logger.critical("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return 0


if __name__ == "__main__":
    sys.exit(main())

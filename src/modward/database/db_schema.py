"""
Modward's SQLite schema.

Six data tables plus ``schema_version``. Every statement uses ``IF NOT
EXISTS`` so :meth:`SchemaManager.initialize_schema` runs on every start.
Timestamps in the sanction tables are integer Unix seconds; the settings
table keeps SQLite ``CURRENT_TIMESTAMP`` strings for its audit columns.
"""

import aiosqlite

from modward.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1

# Table name -> column definitions
TABLE_COLUMNS = {
    "guild_settings": """
        guild_id INTEGER PRIMARY KEY,
        prefix TEXT NOT NULL DEFAULT '!',
        ticket_category_id INTEGER,
        ticket_log_channel_id INTEGER,
        mod_log_channel_id INTEGER,
        welcome_channel_id INTEGER,
        welcome_message TEXT,
        moderator_role_id INTEGER,
        support_role_id INTEGER,
        auto_mod_enabled INTEGER NOT NULL DEFAULT 0,
        auto_mod_spam_limit INTEGER NOT NULL DEFAULT 5,
        auto_mod_caps_percent INTEGER NOT NULL DEFAULT 70,
        auto_mod_links_enabled INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    """,
    "tickets": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        ticket_id TEXT NOT NULL UNIQUE,
        guild_id INTEGER NOT NULL,
        channel_id INTEGER NOT NULL,
        user_id INTEGER NOT NULL,
        status TEXT NOT NULL DEFAULT 'open',
        category TEXT,
        created_at INTEGER NOT NULL,
        closed_at INTEGER,
        closed_by INTEGER,
        transcript TEXT
    """,
    "warnings": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        guild_id INTEGER NOT NULL,
        user_id INTEGER NOT NULL,
        moderator_id INTEGER NOT NULL,
        reason TEXT NOT NULL,
        created_at INTEGER NOT NULL
    """,
    # Rows are kept after a mute ends; ``active`` drops to 0
    "mutes": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        guild_id INTEGER NOT NULL,
        user_id INTEGER NOT NULL,
        moderator_id INTEGER NOT NULL,
        reason TEXT,
        expires_at INTEGER,
        created_at INTEGER NOT NULL,
        active INTEGER NOT NULL DEFAULT 1
    """,
    "bans": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        guild_id INTEGER NOT NULL,
        user_id INTEGER NOT NULL,
        moderator_id INTEGER NOT NULL,
        reason TEXT,
        created_at INTEGER NOT NULL
    """,
    "automod_logs": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        guild_id INTEGER NOT NULL,
        user_id INTEGER NOT NULL,
        action TEXT NOT NULL,
        reason TEXT NOT NULL,
        created_at INTEGER NOT NULL
    """,
}

TABLES = tuple(TABLE_COLUMNS)

# Index name -> (table, columns)
INDEXES = {
    "idx_tickets_guild_user": ("tickets", "guild_id, user_id"),
    "idx_tickets_channel": ("tickets", "channel_id"),
    "idx_warnings_guild_user": ("warnings", "guild_id, user_id"),
    "idx_mutes_guild_user": ("mutes", "guild_id, user_id"),
    "idx_mutes_guild_active": ("mutes", "guild_id, active"),
    "idx_bans_guild_user": ("bans", "guild_id, user_id"),
    "idx_automod_logs_guild_user": ("automod_logs", "guild_id, user_id"),
}

SETTINGS_TOUCH_TRIGGER = """
    CREATE TRIGGER IF NOT EXISTS guild_settings_touch
    AFTER UPDATE ON guild_settings
    FOR EACH ROW
    WHEN NEW.updated_at IS OLD.updated_at
    BEGIN
        UPDATE guild_settings SET updated_at = CURRENT_TIMESTAMP WHERE guild_id = NEW.guild_id;
    END
"""


class SchemaManager:
    """Creates the Modward schema on an open connection."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """Create whatever is missing, record :data:`SCHEMA_VERSION` and commit."""
        for table, columns in TABLE_COLUMNS.items():
            await db.execute(f"CREATE TABLE IF NOT EXISTS {table} ({columns})")
        await db.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            "version INTEGER PRIMARY KEY, applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
        )

        for name, (table, columns) in INDEXES.items():
            await db.execute(f"CREATE INDEX IF NOT EXISTS {name} ON {table}({columns})")

        await db.execute(SETTINGS_TOUCH_TRIGGER)
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        await db.commit()
        logger.info("[SCHEMA] Schema version %d ready (%d tables)", SCHEMA_VERSION, len(TABLES))

"""
Pytest configuration and fixtures for Modward tests.
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from modward.database.db_connection import ConnectionManager  # noqa: E402
from modward.database.db_schema import SchemaManager  # noqa: E402
from modward.moderation.enforcement import EnforcementActions  # noqa: E402
from modward.moderation.sanction_ledger import SanctionLedger  # noqa: E402
from modward.settings.policy_store import PolicyStore  # noqa: E402

TEST_COLORS = {"primary": 1, "success": 2, "warning": 3, "error": 4}


@pytest_asyncio.fixture
async def connection(tmp_path):
    """A fresh connection manager on a temporary database with the schema applied."""
    manager = ConnectionManager()
    await manager.open(tmp_path / "test.db")
    await SchemaManager.initialize_schema(manager.connection)
    yield manager
    await manager.close()


@pytest.fixture
def ledger(connection):
    return SanctionLedger(connection)


@pytest.fixture
def store(connection):
    return PolicyStore(connection, default_prefix="!")


@pytest.fixture
def enforcement(ledger):
    return EnforcementActions(ledger, notice_delete_seconds=5, colors=TEST_COLORS)

"""Direct repository access for the guild settings and ticket tables."""

import pytest

from modward.datatypes.discord_datatypes import GuildID
from modward.datatypes.ticket_datatypes import TicketStatus
from modward.repositories import GuildSettingsRepository, TicketRepository


@pytest.mark.asyncio
async def test_guild_settings_defaults_and_update(connection):
    repo = GuildSettingsRepository()
    async with connection.transaction() as conn:
        assert await repo.insert_default(conn, GuildID(5), "?") is True
        assert await repo.insert_default(conn, GuildID(5), "!") is False
        await repo.update(conn, GuildID(5), {"auto_mod_enabled": True, "auto_mod_spam_limit": 8})

    async with connection.read() as conn:
        policy = await repo.get(conn, GuildID(5))
        assert await repo.get(conn, GuildID(6)) is None
        everything = await repo.get_all(conn)

    assert policy.prefix == "?"
    assert policy.auto_mod_enabled is True
    assert policy.auto_mod_spam_limit == 8
    assert policy.auto_mod_caps_percent == 70
    assert list(everything) == [GuildID(5)]


@pytest.mark.asyncio
async def test_guild_settings_update_rejects_unknown_columns(connection):
    repo = GuildSettingsRepository()
    async with connection.transaction() as conn:
        await repo.insert_default(conn, GuildID(5))
        with pytest.raises(ValueError):
            await repo.update(conn, GuildID(5), {"guild_id = 0; --": 1})


@pytest.mark.asyncio
async def test_ticket_lifecycle(connection):
    async with connection.transaction() as conn:
        await TicketRepository.create(conn, "T-1", 1, 100, 42, created_at=1000, category="billing")
        await TicketRepository.create(conn, "T-2", 1, 101, 42, created_at=1001)

    async with connection.read() as conn:
        ticket = await TicketRepository.get_by_channel(conn, 100)
        open_tickets = await TicketRepository.get_user_open(conn, 1, 42)

    assert ticket.ticket_id == "T-1"
    assert ticket.is_open
    assert len(open_tickets) == 2

    async with connection.transaction() as conn:
        assert await TicketRepository.close(conn, "T-1", closed_by=7, closed_at=2000, transcript="log") is True
        assert await TicketRepository.close(conn, "T-1", closed_by=7, closed_at=2001) is False

    async with connection.read() as conn:
        closed = await TicketRepository.get(conn, "T-1")
        assert await TicketRepository.get_by_channel(conn, 100) is None

    assert closed.status is TicketStatus.CLOSED
    assert closed.closed_by == 7
    assert closed.transcript == "log"

"""
Persistent storage for support tickets.

This is the storage contract for support tickets only. No command or
listener opens or closes tickets yet, so nothing outside the tests calls
this repository. The ticket channel workflow, along with the
``ticketlog`` channel and ``support`` role settings it would read, is not
implemented.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

import aiosqlite

from modward.datatypes.ticket_datatypes import TicketRecord, TicketStatus

_COLUMNS = (
    "id, ticket_id, guild_id, channel_id, user_id, status, category, "
    "created_at, closed_at, closed_by, transcript"
)


def _row_to_ticket(row: Mapping[str, Any]) -> TicketRecord:
    return TicketRecord(
        id=row["id"],
        ticket_id=row["ticket_id"],
        guild_id=row["guild_id"],
        channel_id=row["channel_id"],
        user_id=row["user_id"],
        status=TicketStatus(row["status"]),
        category=row["category"],
        created_at=row["created_at"],
        closed_at=row["closed_at"],
        closed_by=row["closed_by"],
        transcript=row["transcript"],
    )


class TicketRepository:
    """Low-level CRUD for the ``tickets`` table."""

    @staticmethod
    async def create(
        conn: aiosqlite.Connection,
        ticket_id: str,
        guild_id: int,
        channel_id: int,
        user_id: int,
        created_at: int,
        category: Optional[str] = None,
    ) -> int:
        """Insert an open ticket. ``ticket_id`` must be unique."""
        cursor = await conn.execute(
            "INSERT INTO tickets (ticket_id, guild_id, channel_id, user_id, category, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (ticket_id, int(guild_id), int(channel_id), int(user_id), category, created_at),
        )
        return cursor.lastrowid

    @staticmethod
    async def get(conn: aiosqlite.Connection, ticket_id: str) -> TicketRecord | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM tickets WHERE ticket_id = ?", (ticket_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_ticket(row) if row is not None else None

    @staticmethod
    async def get_by_channel(conn: aiosqlite.Connection, channel_id: int) -> TicketRecord | None:
        """Return the open ticket bound to a channel, if any."""
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM tickets WHERE channel_id = ? AND status = 'open'",
            (int(channel_id),),
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_ticket(row) if row is not None else None

    @staticmethod
    async def get_user_open(
        conn: aiosqlite.Connection, guild_id: int, user_id: int
    ) -> List[TicketRecord]:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM tickets WHERE guild_id = ? AND user_id = ? AND status = 'open'",
            (int(guild_id), int(user_id)),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_ticket(row) for row in rows]

    @staticmethod
    async def close(
        conn: aiosqlite.Connection,
        ticket_id: str,
        closed_by: int,
        closed_at: int,
        transcript: Optional[str] = None,
    ) -> bool:
        """Close an open ticket. Returns False if it was not open."""
        cursor = await conn.execute(
            "UPDATE tickets SET status = ?, closed_at = ?, closed_by = ?, transcript = ? "
            "WHERE ticket_id = ? AND status = 'open'",
            (str(TicketStatus.CLOSED), closed_at, int(closed_by), transcript, ticket_id),
        )
        return cursor.rowcount > 0

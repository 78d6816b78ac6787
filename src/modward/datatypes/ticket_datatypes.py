"""Support ticket rows as stored in the ``tickets`` table.

Only :class:`~modward.repositories.ticket_repo.TicketRepository` uses these;
the ticket workflow itself is not implemented, see that module.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TicketStatus(Enum):
    OPEN = "open"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class TicketRecord:
    """A single row from the ``tickets`` table."""

    id: int
    ticket_id: str
    guild_id: int
    channel_id: int
    user_id: int
    status: TicketStatus
    category: Optional[str]
    created_at: int
    closed_at: Optional[int] = None
    closed_by: Optional[int] = None
    transcript: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status is TicketStatus.OPEN

"""
Mute expiry reconciliation.

Each tick re-derives what Discord should look like from the ledger: every
active mute in every guild is checked, and the ones whose ``expires_at`` has
passed get their timeout removed. Nothing is kept between ticks, so restarts
and timeouts removed by hand are handled the same way as normal expiry.

A failed lift leaves the row active and it is retried on the next tick.
Permanent mutes (no expiry) are never lifted here.

The guild's mutes are loaded once per tick but other handlers run while
the sweep awaits Discord. Each row is therefore re-read right before it is
lifted and skipped unless it is still the user's expired active mute, and
only that row is deactivated. If a new mute lands while the timeout is being
removed, the timeout is put back for the new mute's remaining time.
"""

from __future__ import annotations

import asyncio
import datetime
import time
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from modward.datatypes.sanction_datatypes import MuteRecord, MuteState
from modward.moderation.enforcement import EnforcementActions
from modward.moderation.sanction_ledger import SanctionLedger
from modward.util.discord_utils import resolve_member
from modward.util.duration import MAX_TIMEOUT
from modward.util.logger import get_logger

logger = get_logger("mute_reconciler")

EXPIRY_REASON = "Mute duration expired"


@dataclass(slots=True)
class SweepReport:
    """Counters for a single reconciliation tick."""

    checked: int = 0
    lifted: int = 0
    failed: int = 0
    skipped: int = 0


class MuteExpiryReconciler:
    def __init__(self, ledger: SanctionLedger, enforcement: EnforcementActions) -> None:
        self.ledger = ledger
        self.enforcement = enforcement

    async def run_tick(self, guilds: Iterable[Any], now: Optional[int] = None) -> SweepReport:
        """Lift every expired mute in ``guilds``. One failure never stops the sweep."""
        now = int(time.time()) if now is None else int(now)
        report = SweepReport()

        for guild in guilds:
            try:
                mutes = await self.ledger.active_mutes(guild.id)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error("[MUTE_RECONCILER] Failed to load mutes for guild %s: %s", guild.id, exc)
                continue

            for mute in mutes:
                report.checked += 1
                if mute.state_at(now) is not MuteState.EXPIRED_PENDING_LIFT:
                    continue
                try:
                    lifted = await self._lift(guild, mute, now)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error(
                        "[MUTE_RECONCILER] Unexpected error lifting mute #%s for user %s: %s",
                        mute.id, mute.user_id, exc,
                    )
                    lifted = False
                if lifted is None:
                    report.skipped += 1
                elif lifted:
                    report.lifted += 1
                else:
                    report.failed += 1

        if report.lifted or report.failed or report.skipped:
            logger.info(
                "[MUTE_RECONCILER] Sweep done: checked=%d lifted=%d failed=%d skipped=%d",
                report.checked, report.lifted, report.failed, report.skipped,
            )
        return report

    async def _lift(self, guild: Any, mute: MuteRecord, now: int) -> Optional[bool]:
        """Lift one expired mute. Returns None when the row changed under the sweep."""
        member = await resolve_member(guild, mute.user_id)
        if member is None:
            logger.warning(
                "[MUTE_RECONCILER] User %s is not a member of guild %s; mute #%s stays active",
                mute.user_id, guild.id, mute.id,
            )
            return False

        current = await self.ledger.active_mute(guild.id, mute.user_id)
        if current is None or current.id != mute.id or current.state_at(now) is not MuteState.EXPIRED_PENDING_LIFT:
            logger.debug(
                "[MUTE_RECONCILER] Mute #%s for user %s was replaced or lifted, skipping",
                mute.id, mute.user_id,
            )
            return None

        result = await self.enforcement.lift_timeout(member, reason=EXPIRY_REASON, mute_id=mute.id)
        if not result.ok:
            return False
        logger.debug("[MUTE_RECONCILER] Lifted mute #%s for user %s", mute.id, mute.user_id)

        newer = await self.ledger.active_mute(guild.id, mute.user_id)
        if newer is not None and newer.id != mute.id and newer.state_at(now) is MuteState.ACTIVE:
            await self._restore(member, newer, now)
        return True

    async def _restore(self, member: Any, mute: MuteRecord, now: int) -> None:
        """Re-apply the timeout of a mute recorded while its predecessor was being lifted."""
        if mute.expires_at is None:
            remaining = MAX_TIMEOUT
        else:
            remaining = min(MAX_TIMEOUT, datetime.timedelta(seconds=mute.expires_at - now))
        try:
            await member.timeout_for(remaining, reason=mute.reason or "Mute reapplied")
        except Exception as exc:
            logger.error(
                "[MUTE_RECONCILER] Could not restore timeout for mute #%s of user %s: %s",
                mute.id, mute.user_id, exc,
            )
            return
        logger.info("[MUTE_RECONCILER] Restored timeout for newer mute #%s of user %s", mute.id, mute.user_id)

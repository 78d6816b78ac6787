import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from fakes import make_guild, make_member
from modward.cog.listener.scheduler_cog import MuteReconcilerCog
from modward.scheduler.mute_reconciler import MuteExpiryReconciler, SweepReport
from modward.util.duration import MAX_TIMEOUT


@pytest.fixture
def reconciler(ledger, enforcement):
    return MuteExpiryReconciler(ledger, enforcement)


@pytest.mark.asyncio
async def test_expired_mute_is_lifted(reconciler, ledger):
    guild = make_guild()
    member = make_member(guild=guild)
    await ledger.record_mute(1, 42, 7, "x", 600, now=1_000)

    report = await reconciler.run_tick([guild], now=1_600)

    assert (report.checked, report.lifted, report.failed) == (1, 1, 0)
    member.remove_timeout.assert_awaited_once()
    assert await ledger.active_mute(1, 42) is None


@pytest.mark.asyncio
async def test_unexpired_and_permanent_mutes_are_left_alone(reconciler, ledger):
    guild = make_guild()
    first = make_member(user_id=42, guild=guild)
    second = make_member(user_id=43, guild=guild)
    await ledger.record_mute(1, 42, 7, "x", 600, now=1_000)
    await ledger.record_mute(1, 43, 7, "x", None, now=1_000)

    report = await reconciler.run_tick([guild], now=1_599)

    assert (report.checked, report.lifted, report.failed) == (2, 0, 0)
    first.remove_timeout.assert_not_awaited()
    second.remove_timeout.assert_not_awaited()


@pytest.mark.asyncio
async def test_member_who_left_stays_muted_and_is_retried(reconciler, ledger):
    guild = make_guild()
    await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)

    report = await reconciler.run_tick([guild], now=2_000)
    assert (report.lifted, report.failed) == (0, 1)
    assert await ledger.active_mute(1, 42) is not None

    member = make_member(guild=guild)
    report = await reconciler.run_tick([guild], now=2_060)
    assert report.lifted == 1
    member.remove_timeout.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_lift_does_not_abort_sweep(reconciler, ledger):
    guild = make_guild()
    broken = make_member(user_id=42, guild=guild)
    broken.remove_timeout.side_effect = RuntimeError("gateway down")
    healthy = make_member(user_id=43, guild=guild)
    await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)
    await ledger.record_mute(1, 43, 7, "x", 60, now=1_000)

    report = await reconciler.run_tick([guild], now=2_000)

    assert (report.lifted, report.failed) == (1, 1)
    healthy.remove_timeout.assert_awaited_once()
    assert (await ledger.active_mute(1, 42)) is not None


@pytest.mark.asyncio
async def test_reconciling_twice_is_idempotent(reconciler, ledger):
    guild = make_guild()
    member = make_member(guild=guild)
    await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)

    await reconciler.run_tick([guild], now=2_000)
    report = await reconciler.run_tick([guild], now=2_060)

    assert report.checked == 0
    member.remove_timeout.assert_awaited_once()
    assert len(await ledger.mute_history(1, 42)) == 1


@pytest.mark.asyncio
async def test_cog_sweep_runs_tick_over_bot_guilds():
    guilds = [SimpleNamespace(id=1), SimpleNamespace(id=2)]
    bot = SimpleNamespace(guilds=guilds, wait_until_ready=AsyncMock())
    report = SweepReport(checked=2, lifted=1, failed=0)
    reconciler = SimpleNamespace(run_tick=AsyncMock(return_value=report))
    cog = MuteReconcilerCog(bot, reconciler=reconciler)

    await cog._sweep_task.coro(cog)

    reconciler.run_tick.assert_awaited_once_with(guilds)
    assert cog.last_report is report


@pytest.mark.asyncio
async def test_mute_reissued_during_sweep_is_not_lifted(reconciler, ledger):
    guild = make_guild()
    first = make_member(user_id=41, guild=guild)
    second = make_member(user_id=42, guild=guild)
    await ledger.record_mute(1, 41, 7, "x", 60, now=1_000)
    await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)

    async def remute_second(**kwargs):
        await ledger.record_mute(1, 42, 7, "again", 3600, now=1_990)

    first.remove_timeout.side_effect = remute_second

    report = await reconciler.run_tick([guild], now=2_000)

    assert (report.checked, report.lifted, report.failed, report.skipped) == (2, 1, 0, 1)
    second.remove_timeout.assert_not_awaited()
    current = await ledger.active_mute(1, 42)
    assert current is not None
    assert current.reason == "again"
    assert current.expires_at == 1_990 + 3600


@pytest.mark.asyncio
async def test_mute_lifted_by_hand_during_sweep_is_skipped(reconciler, ledger):
    guild = make_guild()
    first = make_member(user_id=41, guild=guild)
    second = make_member(user_id=42, guild=guild)
    await ledger.record_mute(1, 41, 7, "x", 60, now=1_000)
    await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)

    async def unmute_second(**kwargs):
        await ledger.deactivate_mute(1, 42)

    first.remove_timeout.side_effect = unmute_second

    report = await reconciler.run_tick([guild], now=2_000)

    assert (report.lifted, report.skipped) == (1, 1)
    second.remove_timeout.assert_not_awaited()
    assert await ledger.active_mute(1, 42) is None


@pytest.mark.asyncio
async def test_remute_while_timeout_is_removed_keeps_new_mute(reconciler, ledger):
    guild = make_guild()
    member = make_member(user_id=42, guild=guild)
    old = await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)

    async def remute(**kwargs):
        await ledger.record_mute(1, 42, 7, "again", 600, now=1_995)

    member.remove_timeout.side_effect = remute

    report = await reconciler.run_tick([guild], now=2_000)

    assert report.lifted == 1
    current = await ledger.active_mute(1, 42)
    assert current is not None and current.id != old.id
    # Timeout is put back for what is left of the new mute
    member.timeout_for.assert_awaited_once()
    assert member.timeout_for.await_args.args[0] == datetime.timedelta(seconds=1_995 + 600 - 2_000)


@pytest.mark.asyncio
async def test_permanent_remute_restores_maximum_timeout(reconciler, ledger):
    guild = make_guild()
    member = make_member(user_id=42, guild=guild)
    await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)

    async def remute(**kwargs):
        await ledger.record_mute(1, 42, 7, "forever", None, now=1_995)

    member.remove_timeout.side_effect = remute

    await reconciler.run_tick([guild], now=2_000)

    assert member.timeout_for.await_args.args[0] == MAX_TIMEOUT
    assert (await ledger.active_mute(1, 42)).is_permanent

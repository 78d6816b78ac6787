import pytest

from modward.datatypes.sanction_datatypes import MuteState


@pytest.mark.asyncio
async def test_record_mute_sets_expiry(ledger):
    mute = await ledger.record_mute(1, 42, 7, "rule violation", 600, now=1_000)

    assert mute.active
    assert mute.expires_at == 1_600
    stored = await ledger.active_mute(1, 42)
    assert stored.id == mute.id
    assert stored.expires_at == 1_600
    assert stored.reason == "rule violation"


@pytest.mark.asyncio
async def test_permanent_mute_has_no_expiry(ledger):
    mute = await ledger.record_mute(1, 42, 7, "no reason", None, now=1_000)
    assert mute.is_permanent
    assert mute.state_at(10**10) is MuteState.ACTIVE


@pytest.mark.asyncio
async def test_new_mute_replaces_active_one(ledger):
    await ledger.record_mute(1, 42, 7, "first", 60, now=1_000)
    second = await ledger.record_mute(1, 42, 7, "second", 120, now=1_010)

    active = await ledger.active_mutes(1)
    assert [m.id for m in active] == [second.id]
    history = await ledger.mute_history(1, 42)
    assert [m.reason for m in history] == ["second", "first"]
    assert history[1].active is False


@pytest.mark.asyncio
async def test_deactivate_mute(ledger):
    await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)
    assert await ledger.deactivate_mute(1, 42) == 1
    assert await ledger.deactivate_mute(1, 42) == 0
    assert await ledger.active_mute(1, 42) is None


@pytest.mark.asyncio
async def test_mute_state_transitions(ledger):
    mute = await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)
    assert mute.state_at(1_059) is MuteState.ACTIVE
    assert mute.state_at(1_060) is MuteState.EXPIRED_PENDING_LIFT
    mute.active = False
    assert mute.state_at(1_060) is MuteState.INACTIVE


@pytest.mark.asyncio
async def test_warnings_are_scoped_and_newest_first(ledger):
    assert await ledger.add_warning(1, 42, 7, "first", now=100) == 1
    assert await ledger.add_warning(1, 42, 7, "second", now=200) == 2
    await ledger.add_warning(2, 42, 7, "other guild", now=300)

    warnings = await ledger.warnings_for(1, 42)
    assert [w.reason for w in warnings] == ["second", "first"]

    assert await ledger.clear_warnings(1, 42) == 2
    assert await ledger.warnings_for(1, 42) == []
    assert len(await ledger.warnings_for(2, 42)) == 1


@pytest.mark.asyncio
async def test_bans_and_automod_log(ledger):
    await ledger.record_ban(1, 42, 7, "raid", now=100)
    bans = await ledger.bans_for(1, 42)
    assert bans[0].reason == "raid"

    await ledger.log_automod(1, 42, "delete", "Spam detected", now=100)
    await ledger.log_automod(1, 43, "delete", "Excessive caps usage", now=101)
    history = await ledger.automod_history(1, 42)
    assert [(e.action, e.reason) for e in history] == [("delete", "Spam detected")]
    assert await ledger.automod_count(1) == 2


@pytest.mark.asyncio
async def test_deactivate_mute_by_id_only_touches_that_row(ledger):
    old = await ledger.record_mute(1, 42, 7, "x", 60, now=1_000)
    new = await ledger.record_mute(1, 42, 7, "y", 60, now=1_030)

    # The old row was already replaced, so nothing changes
    assert await ledger.deactivate_mute_by_id(old.id) is False
    assert (await ledger.active_mute(1, 42)).id == new.id

    assert await ledger.deactivate_mute_by_id(new.id) is True
    assert await ledger.active_mute(1, 42) is None

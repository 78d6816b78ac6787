import pytest

from modward.datatypes.guild_policy import GuildPolicyUpdate


@pytest.mark.asyncio
async def test_get_creates_default_policy(store, connection):
    policy = await store.get(99)

    assert policy.prefix == "!"
    assert policy.auto_mod_enabled is False
    assert policy.auto_mod_spam_limit == 5
    assert policy.auto_mod_caps_percent == 70

    async with connection.read() as conn:
        async with conn.execute("SELECT COUNT(*) FROM guild_settings WHERE guild_id = 99") as cursor:
            assert (await cursor.fetchone())[0] == 1


@pytest.mark.asyncio
async def test_get_is_cached(store):
    first = await store.get(99)
    assert await store.get(99) is first


@pytest.mark.asyncio
async def test_update_persists_and_refreshes_cache(store):
    await store.get(99)
    policy = await store.update(99, GuildPolicyUpdate(prefix="?", auto_mod_enabled=True, auto_mod_caps_percent=80))

    assert policy.prefix == "?"
    assert policy.auto_mod_enabled is True
    assert policy.auto_mod_caps_percent == 80

    store.invalidate(99)
    reloaded = await store.get(99)
    assert reloaded.prefix == "?"
    assert reloaded.auto_mod_caps_percent == 80


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "update",
    [
        GuildPolicyUpdate(prefix="toolong"),
        GuildPolicyUpdate(prefix="a b"),
        GuildPolicyUpdate(auto_mod_spam_limit=1),
        GuildPolicyUpdate(auto_mod_spam_limit=51),
        GuildPolicyUpdate(auto_mod_caps_percent=0),
        GuildPolicyUpdate(auto_mod_caps_percent=101),
    ],
)
async def test_invalid_update_writes_nothing(store, update):
    before = await store.get(99)
    with pytest.raises(ValueError):
        await store.update(99, update)

    store.invalidate(99)
    after = await store.get(99)
    assert after.prefix == before.prefix
    assert after.auto_mod_spam_limit == before.auto_mod_spam_limit
    assert after.auto_mod_caps_percent == before.auto_mod_caps_percent


@pytest.mark.asyncio
async def test_empty_update_is_a_no_op(store):
    before = await store.get(99)
    assert await store.update(99, GuildPolicyUpdate()) is before

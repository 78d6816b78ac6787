import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from fakes import make_channel, make_guild, make_member, make_message
from modward.cog.listener.events_listener import EventsListenerCog
from modward.cog.commands import moderation_cmds
from modward.cog.commands.moderation_cmds import (
    COMMANDS,
    GENERIC_ERROR,
    PERMISSION_DENIED,
    ModerationCommandsCog,
)


@pytest.fixture
def guild():
    return make_guild()


@pytest.fixture
def moderator(guild):
    return make_member(user_id=7, guild=guild, moderate_members=True, manage_messages=True)


@pytest.fixture
def target(guild):
    return make_member(user_id=42, guild=guild)


@pytest.fixture
def cog(store, ledger, enforcement):
    return ModerationCommandsCog(SimpleNamespace(), store=store, ledger=ledger, enforcement=enforcement)


def test_every_command_declares_a_known_permission():
    from modward.util.discord_utils import PERMISSION_TAGS

    expected = {
        "warn", "warnings", "clearwarnings", "mute", "unmute", "kick", "ban", "unban",
        "purge", "setprefix", "setup", "help", "automod", "setchannel", "setrole", "setwelcome",
    }
    assert expected == set(COMMANDS)
    for spec in COMMANDS.values():
        assert spec.permission is None or spec.permission in PERMISSION_TAGS


def test_parse():
    assert ModerationCommandsCog.parse("!Mute <@42> 10m spam", "!") == ("mute", ["<@42>", "10m", "spam"])
    assert ModerationCommandsCog.parse("hello", "!") is None
    assert ModerationCommandsCog.parse("!", "!") is None


@pytest.mark.asyncio
async def test_unknown_command_is_not_handled(cog, store, moderator):
    policy = await store.get(1)
    assert await cog.dispatch(make_message("!dance", moderator), policy) is False


@pytest.mark.asyncio
async def test_mute_with_duration(cog, store, ledger, moderator, target):
    policy = await store.get(1)
    message = make_message("!mute <@42> 10m rule violation", moderator, mentions=[target])

    assert await cog.dispatch(message, policy) is True

    target.timeout_for.assert_awaited_once_with(datetime.timedelta(minutes=10), reason="rule violation")
    mute = await ledger.active_mute(1, 42)
    assert mute.reason == "rule violation"
    assert mute.expires_at - mute.created_at == 600


@pytest.mark.asyncio
async def test_mute_without_duration_is_permanent(cog, store, ledger, moderator, target):
    policy = await store.get(1)
    await cog.dispatch(make_message("!mute <@42> being rude", moderator, mentions=[target]), policy)

    mute = await ledger.active_mute(1, 42)
    assert mute.expires_at is None
    assert mute.reason == "being rude"


@pytest.mark.asyncio
async def test_mute_rejects_bad_duration(cog, store, ledger, moderator, target):
    policy = await store.get(1)
    message = make_message("!mute <@42> 30d too long", moderator, mentions=[target])

    await cog.dispatch(message, policy)

    target.timeout_for.assert_not_awaited()
    assert "28 days" in message.reply.await_args.args[0]
    assert await ledger.active_mute(1, 42) is None


@pytest.mark.asyncio
async def test_permission_denied(cog, store, ledger, guild, target):
    policy = await store.get(1)
    nobody = make_member(user_id=8, guild=guild)
    message = make_message("!mute <@42> 10m x", nobody, mentions=[target])

    await cog.dispatch(message, policy)

    message.reply.assert_awaited_once_with(PERMISSION_DENIED)
    target.timeout_for.assert_not_awaited()
    assert await ledger.active_mute(1, 42) is None


@pytest.mark.asyncio
async def test_purge_out_of_range_is_rejected(cog, store, moderator):
    policy = await store.get(1)
    message = make_message("!purge 150", moderator)

    await cog.dispatch(message, policy)

    message.channel.purge.assert_not_awaited()
    assert "between 1 and 100" in message.reply.await_args.args[0]


@pytest.mark.asyncio
async def test_purge(cog, store, moderator):
    policy = await store.get(1)
    message = make_message("!purge 5", moderator)
    message.channel.purge.return_value = [object()] * 6

    await cog.dispatch(message, policy)

    message.channel.purge.assert_awaited_once_with(limit=6)
    message.channel.send.assert_awaited_once_with("Deleted 5 messages.", delete_after=3)


@pytest.mark.asyncio
async def test_warn_and_list_warnings(cog, store, moderator, target):
    policy = await store.get(1)
    await cog.dispatch(make_message("!warn <@42> be nice", moderator, mentions=[target]), policy)

    listing = make_message("!warnings <@42>", moderator, mentions=[target])
    await cog.dispatch(listing, policy)
    embed = listing.reply.await_args.kwargs["embed"]
    assert "be nice" in embed.description

    clear = make_message("!clearwarnings <@42>", moderator, mentions=[target])
    await cog.dispatch(clear, policy)
    assert clear.reply.await_args.args[0].startswith("Cleared 1 warning")

    empty = make_message("!warnings <@42>", moderator, mentions=[target])
    await cog.dispatch(empty, policy)
    empty.reply.assert_awaited_once_with("No warnings found for this user.")


@pytest.mark.asyncio
async def test_setprefix_requires_administrator(cog, store, guild, moderator):
    policy = await store.get(1)
    message = make_message("!setprefix ?", moderator)
    await cog.dispatch(message, policy)
    message.reply.assert_awaited_once_with(PERMISSION_DENIED)

    admin = make_member(user_id=9, guild=guild, administrator=True)
    await cog.dispatch(make_message("!setprefix ?", admin), policy)
    assert (await store.get(1)).prefix == "?"


@pytest.mark.asyncio
async def test_setprefix_too_long(cog, store, guild):
    policy = await store.get(1)
    admin = make_member(user_id=9, guild=guild, administrator=True)
    message = make_message("!setprefix toolong", admin)

    await cog.dispatch(message, policy)

    message.reply.assert_awaited_once_with("Please provide a valid prefix (max 5 characters).")
    assert (await store.get(1)).prefix == "!"


@pytest.mark.asyncio
async def test_automod_configuration(cog, store, guild):
    admin = make_member(user_id=9, guild=guild, administrator=True)

    await cog.dispatch(make_message("!automod on", admin), await store.get(1))
    await cog.dispatch(make_message("!automod spam 8", admin), await store.get(1))
    await cog.dispatch(make_message("!automod caps 85%", admin), await store.get(1))
    await cog.dispatch(make_message("!automod links on", admin), await store.get(1))

    policy = await store.get(1)
    assert policy.auto_mod_enabled is True
    assert policy.auto_mod_spam_limit == 8
    assert policy.auto_mod_caps_percent == 85
    assert policy.auto_mod_links_enabled is True

    bad = make_message("!automod spam 500", admin)
    await cog.dispatch(bad, policy)
    assert bad.reply.await_args.args[0] == "Spam limit must be between 2 and 50 messages."


@pytest.mark.asyncio
async def test_setchannel_and_setrole(cog, store, guild):
    admin = make_member(user_id=9, guild=guild, administrator=True)

    channel_msg = make_message("!setchannel modlog <#500>", admin)
    channel_msg.channel_mentions = [SimpleNamespace(id=500)]
    await cog.dispatch(channel_msg, await store.get(1))

    role_msg = make_message("!setrole moderator <@&77>", admin)
    role_msg.role_mentions = [SimpleNamespace(id=77)]
    await cog.dispatch(role_msg, await store.get(1))

    policy = await store.get(1)
    assert policy.mod_log_channel_id == 500
    assert policy.moderator_role_id == 77


@pytest.mark.asyncio
async def test_help_needs_no_permission(cog, store, guild):
    policy = await store.get(1)
    member = make_member(user_id=8, guild=guild)
    message = make_message("!help", member)

    await cog.dispatch(message, policy)

    assert "embed" in message.reply.await_args.kwargs


@pytest.mark.asyncio
async def test_handler_errors_become_generic_reply(cog, store, moderator, target, monkeypatch):
    policy = await store.get(1)
    broken = moderation_cmds.CommandSpec(AsyncMock(side_effect=RuntimeError("boom")), "moderate", "warn")
    monkeypatch.setitem(COMMANDS, "warn", broken)
    message = make_message("!warn <@42>", moderator, mentions=[target])

    assert await cog.dispatch(message, policy) is True

    message.reply.assert_awaited_once_with(GENERIC_ERROR)


@pytest.mark.asyncio
async def test_unmute_and_ban(cog, store, ledger, guild, moderator, target):
    policy = await store.get(1)
    await cog.dispatch(make_message("!mute <@42> 1h x", moderator, mentions=[target]), policy)
    await cog.dispatch(make_message("!unmute <@42>", moderator, mentions=[target]), policy)
    assert await ledger.active_mute(1, 42) is None

    banner = make_member(user_id=11, guild=guild, ban_members=True)
    await cog.dispatch(make_message("!ban 42 raiding", banner), policy)
    guild.ban.assert_awaited_once()
    assert (await ledger.bans_for(1, 42))[0].reason == "raiding"

    await cog.dispatch(make_message("!unban 42", banner), policy)
    guild.unban.assert_awaited_once()


@pytest.mark.asyncio
async def test_setwelcome_greets_new_members(cog, store):
    welcome_channel = make_channel(555)
    guild = make_guild(channels={555: welcome_channel})
    admin = make_member(user_id=9, guild=guild, administrator=True)

    await cog.dispatch(make_message("!setchannel welcome 555", admin), await store.get(1))
    msg = make_message("!setwelcome Welcome {user}  to {server}!", admin)
    assert await cog.dispatch(msg, await store.get(1)) is True
    msg.reply.assert_awaited_once_with("Welcome message updated.")
    assert (await store.get(1)).welcome_message == "Welcome {user}  to {server}!"

    newcomer = make_member(user_id=50, guild=guild)
    await EventsListenerCog(SimpleNamespace(), store=store).on_member_join(newcomer)

    welcome_channel.send.assert_awaited_once_with("Welcome <@50>  to Test Server!")


@pytest.mark.asyncio
async def test_setwelcome_requires_text_and_admin(cog, store, guild, moderator):
    admin = make_member(user_id=9, guild=guild, administrator=True)
    empty = make_message("!setwelcome   ", admin)
    await cog.dispatch(empty, await store.get(1))
    assert empty.reply.await_args.args[0].startswith("Usage: `!setwelcome <message>`")

    denied = make_message("!setwelcome hi", moderator)
    await cog.dispatch(denied, await store.get(1))
    denied.reply.assert_awaited_once_with(PERMISSION_DENIED)
    assert (await store.get(1)).welcome_message is None


@pytest.mark.asyncio
async def test_setwelcome_rejects_overlong_message(cog, store, guild):
    admin = make_member(user_id=9, guild=guild, administrator=True)
    msg = make_message("!setwelcome " + "x" * 1501, admin)
    await cog.dispatch(msg, await store.get(1))
    assert msg.reply.await_args.args[0] == "Welcome message must be at most 1500 characters."


def test_setup_registers_router_and_returns_it(enforcement):
    bot = SimpleNamespace(add_cog=lambda cog: registered.append(cog))
    registered = []

    router = moderation_cmds.setup(bot, enforcement)

    assert registered == [router]
    assert router.enforcement is enforcement

from modward.datatypes.sanction_datatypes import WarningRecord
from modward.util import embeds


def test_automod_log_truncates_long_messages():
    embed = embeds.automod_log_embed(1, 2, "Spam detected", "x" * 5000, {"warning": 3})
    message_field = embed.fields[3]
    assert message_field.name == "Message"
    assert len(message_field.value) == embeds.MAX_FIELD_CONTENT


def test_sanction_embed_fields():
    embed = embeds.sanction_embed("User Muted", 42, 7, "spam", duration="10 minutes")
    assert [f.name for f in embed.fields] == ["User", "Moderator", "Duration", "Reason"]


def test_warnings_embed_lists_each_warning():
    records = [WarningRecord(1, 1, 42, 7, "first", 100), WarningRecord(2, 1, 42, 7, "second", 200)]
    embed = embeds.warnings_embed("<@42>", records)
    assert "**1.** first" in embed.description
    assert "**2.** second" in embed.description


def test_help_embed_uses_prefix():
    embed = embeds.help_embed("?")
    assert "`?mute`" in embed.fields[0].value


def test_help_and_setup_list_setwelcome():
    assert "`?setwelcome`" in embeds.help_embed("?").fields[1].value
    setup = embeds.setup_embed("?")
    welcome = next(f for f in setup.fields if f.name == "Welcome")
    assert "`?setwelcome <message>`" in welcome.value
    assert "{user}" in welcome.value

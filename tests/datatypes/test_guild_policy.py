import pytest

from modward.datatypes.guild_policy import POLICY_COLUMNS, GuildPolicy, GuildPolicyUpdate


def test_changes_only_include_set_fields():
    update = GuildPolicyUpdate(prefix="?", auto_mod_enabled=False)
    assert update.changes() == {"prefix": "?", "auto_mod_enabled": False}


def test_every_update_field_is_an_allowed_column():
    from dataclasses import fields

    assert {f.name for f in fields(GuildPolicyUpdate)} == set(POLICY_COLUMNS)


@pytest.mark.parametrize(
    "update, message",
    [
        (GuildPolicyUpdate(prefix=""), "Please provide a valid prefix (max 5 characters)."),
        (GuildPolicyUpdate(auto_mod_spam_limit=100), "Spam limit must be between 2 and 50 messages."),
        (GuildPolicyUpdate(auto_mod_caps_percent=0), "Caps threshold must be between 1 and 100 percent."),
        (GuildPolicyUpdate(welcome_message="x" * 1501), "Welcome message must be at most 1500 characters."),
    ],
)
def test_validate_messages(update, message):
    with pytest.raises(ValueError) as excinfo:
        update.validate()
    assert str(excinfo.value) == message


def test_with_changes_returns_copy():
    policy = GuildPolicy(guild_id=1)
    changed = policy.with_changes({"prefix": "$"})
    assert changed.prefix == "$"
    assert policy.prefix == "!"

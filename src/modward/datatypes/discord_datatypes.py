"""
Typed Discord snowflake IDs.

``GuildID``, ``UserID``, ``ChannelID`` and ``RoleID`` keep the different ID
kinds apart in signatures while still comparing equal to the raw ``int`` (or
its decimal string), so they work as dict keys next to plain IDs and drop
into SQL parameters through ``int(...)``.

Each kind also knows its Discord mention syntax, which lets command
arguments be parsed with ``UserID.parse("<@!42>")`` or
``ChannelID.parse("<#42>")``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Tuple


class _Snowflake(int):
    """An ``int`` that remembers which kind of Discord object it names."""

    # Opening sequences of this kind's mention, longest first
    MENTION_PREFIXES: ClassVar[Tuple[str, ...]] = ()

    def __new__(cls, value: Any):
        if isinstance(value, bool):
            raise ValueError(f"{cls.__name__} cannot be built from a bool")
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit():
                raise ValueError(f"{cls.__name__} needs a numeric ID, got {value!r}")
        elif not isinstance(value, int):
            raise ValueError(f"{cls.__name__} cannot be built from {type(value).__name__}")
        return super().__new__(cls, int(value))

    @classmethod
    def parse(cls, raw: str):
        """Accept a bare ID or this kind's mention form.

        Raises:
            ValueError: If ``raw`` is neither.
        """
        text = raw.strip()
        if text.endswith(">"):
            for prefix in cls.MENTION_PREFIXES:
                if text.startswith(prefix):
                    text = text[len(prefix):-1]
                    break
        if not text.isdigit():
            raise ValueError(f"Not a {cls.__name__} or mention: {raw!r}")
        return cls(text)

    def to_int(self) -> int:
        return int(self)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _Snowflake) and type(other) is not type(self):
            return False
        if isinstance(other, str):
            return other.strip() == str(self)
        return int.__eq__(self, other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    __hash__ = int.__hash__

    def __str__(self) -> str:
        return int.__repr__(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int.__repr__(self)})"


class GuildID(_Snowflake):
    """
    A guild (server) ID.

        >>> GuildID("123456789012345678") == 123456789012345678
        True
    """

    @classmethod
    def from_guild(cls, guild: Any) -> "GuildID":
        return cls(guild.id)


class UserID(_Snowflake):
    """A user or member ID; mentions look like ``<@id>`` or ``<@!id>``."""

    MENTION_PREFIXES = ("<@!", "<@")

    @classmethod
    def from_user(cls, member: Any) -> "UserID":
        return cls(member.id)

    @classmethod
    def parse(cls, raw: str) -> "UserID":
        # ``<@&id>`` is a role mention and must not parse as a user
        if raw.strip().startswith("<@&"):
            raise ValueError(f"Not a UserID or mention: {raw!r}")
        return super().parse(raw)


class ChannelID(_Snowflake):
    MENTION_PREFIXES = ("<#",)


class RoleID(_Snowflake):
    MENTION_PREFIXES = ("<@&",)

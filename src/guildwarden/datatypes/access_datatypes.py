"""
Access lists attached to bot commands.

A command's ``access`` entry in the configuration is a list of tokens:

- ``"all"``: anyone may run the command
- ``"owner"``: the bot owner may run the command
- any other value: an author id that may run the command

At load time the list is parsed into an :class:`AccessList` so that a
malformed entry is rejected once, instead of silently denying every author.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet

from guildwarden.datatypes.guild_settings import ConfigurationError

ACCESS_ALL = "all"
ACCESS_OWNER = "owner"


@dataclass(frozen=True, slots=True)
class AccessList:
    """Parsed access tokens of a command.

    Attributes:
        allow_all: ``"all"`` was listed.
        allow_owner: ``"owner"`` was listed.
        user_ids: Explicit author ids that were listed.
    """

    allow_all: bool = False
    allow_owner: bool = False
    user_ids: FrozenSet[str] = frozenset()

    @classmethod
    def from_tokens(cls, tokens: Any) -> "AccessList":
        """Parse a configuration value into an :class:`AccessList`.

        Args:
            tokens: The raw ``access`` value, expected to be a list.

        Returns:
            AccessList: The parsed access list. An empty list yields an
            access list that grants nobody.

        Raises:
            ConfigurationError: If ``tokens`` is not a list, or holds
                something other than strings and integers.
        """
        if not isinstance(tokens, (list, tuple)):
            raise ConfigurationError(f"access must be a list, got {type(tokens).__name__}")

        allow_all = False
        allow_owner = False
        user_ids = set()
        for token in tokens:
            if isinstance(token, bool) or not isinstance(token, (str, int)):
                raise ConfigurationError(f"invalid access token {token!r}")
            value = str(token).strip()
            if value == ACCESS_ALL:
                allow_all = True
            elif value == ACCESS_OWNER:
                allow_owner = True
            elif value:
                user_ids.add(value)
        return cls(allow_all=allow_all, allow_owner=allow_owner, user_ids=frozenset(user_ids))


def has_access(accesses: Any, author_id: Any, owner_id: Any) -> bool:
    """Return True if ``author_id`` may run a command guarded by ``accesses``.

    ``accesses`` may be an :class:`AccessList` or a raw token list straight
    from configuration. Anything else, and any empty list, grants nothing.
    """
    if isinstance(accesses, AccessList):
        access_list = accesses
    elif isinstance(accesses, (list, tuple)) and accesses:
        try:
            access_list = AccessList.from_tokens(accesses)
        except ConfigurationError:
            return False
    else:
        return False

    author = str(author_id)
    if access_list.allow_all:
        return True
    if access_list.allow_owner and owner_id not in (None, "") and author == str(owner_id):
        return True
    return author in access_list.user_ids

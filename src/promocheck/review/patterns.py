"""Text patterns for request fields.

The matchers only check syntax. Whether a matched name belongs to the
sender, or a matched level to one of their roles, is decided by the field
validator.
"""

from __future__ import annotations

import re

from promocheck.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from promocheck.datatypes.review_datatypes import IdentityClaim, MessageReference, RankTransition

# "Иван Петров 1234", "John Smith | 42", "John Smith l 42", "John Smith42"
IDENTITY_PATTERN = re.compile(
    r"(?P<name>\w+\s\w+)(?:\s|\s?[|il]\s)?(?P<id>\d{1,6})",
    re.IGNORECASE,
)
"""Two-word name followed by a 1-6 digit static ID, optionally separated."""

# "Стрелок [1] → Сержант [2]"; \w is Unicode-aware so Cyrillic rank names match
RANK_TRANSITION_PATTERN = re.compile(
    r"[\w\s-]+\s\[(?P<current>\d+)\]\s→\s[\w\s-]+\s\[(?P<new>\d+)\]",
    re.IGNORECASE,
)
"""Rank name and level in brackets, an arrow, then the target rank and level."""

MESSAGE_LINK_PATTERN = re.compile(
    r"https://(?P<host>(?:ptb\.|canary\.)?discord(?:app)?\.com)"
    r"/channels/(?P<guild>\d+)/(?P<channel>\d+)/(?P<message>\d+)"
)
"""Jump link to a message in a guild channel."""

ANY_LINK_PATTERN = re.compile(r"https?://")

USER_MENTION_PATTERN = re.compile(r"<@!?(?P<id>\d+)>")


def match_identity(text: str | None) -> IdentityClaim | None:
    """Extract a ``name + static ID`` claim from free text."""
    match = IDENTITY_PATTERN.search(text or "")
    if not match:
        return None
    return IdentityClaim(name=match.group("name").strip(), static_id=match.group("id").strip())


def match_rank_transition(text: str | None) -> RankTransition | None:
    """Extract the current and requested rank levels, both are required."""
    match = RANK_TRANSITION_PATTERN.search(text or "")
    if not match:
        return None
    return RankTransition(current_level=match.group("current").strip(), new_level=match.group("new").strip())


def match_message_link(text: str | None) -> MessageReference | None:
    """Parse the first Discord message jump link in ``text``."""
    match = MESSAGE_LINK_PATTERN.search(text or "")
    if not match:
        return None
    return MessageReference(
        host=match.group("host"),
        guild_id=GuildID(match.group("guild")),
        channel_id=ChannelID(match.group("channel")),
        message_id=MessageID(match.group("message")),
    )


def contains_any_link(text: str | None) -> bool:
    """Return True if ``text`` contains anything that starts like a URL."""
    return bool(ANY_LINK_PATTERN.search(text or ""))


def match_user_mention(text: str | None) -> UserID | None:
    """Return the user ID of the first ``<@id>`` / ``<@!id>`` mention."""
    match = USER_MENTION_PATTERN.search(text or "")
    if not match:
        return None
    return UserID(match.group("id"))

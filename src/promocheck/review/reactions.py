"""Reaction-based decision inference.

Reviewers approve or reject a message by reacting to it. Guilds use a mix of
unicode check marks and custom emoji, so names are matched loosely: exact
vocabulary entries, or any name containing ``check`` / ``cross``.
"""

from __future__ import annotations

from typing import Iterable

from promocheck.datatypes.review_datatypes import Decision, Reaction

APPROVE_EMOJIS = ("✅", "☑️", "✓", "white_check_mark")
APPROVE_SUBSTRING = "check"

REJECT_EMOJIS = ("❌", "✖️", "x", "cross_mark")
REJECT_SUBSTRING = "cross"


def _matches(reaction: Reaction, vocabulary: tuple[str, ...], substring: str) -> bool:
    name = reaction.emoji_name or ""
    return name in vocabulary or substring in name


def has_approve_reaction(reactions: Iterable[Reaction]) -> bool:
    return any(_matches(r, APPROVE_EMOJIS, APPROVE_SUBSTRING) for r in reactions)


def has_reject_reaction(reactions: Iterable[Reaction]) -> bool:
    return any(_matches(r, REJECT_EMOJIS, REJECT_SUBSTRING) for r in reactions)


def classify_reactions(reactions: Iterable[Reaction]) -> Decision:
    """Map a reaction set to a decision.

    Approval is tested first, so a set that matches both vocabularies is
    ``APPROVED``.
    """
    reactions = tuple(reactions)
    if not reactions:
        return Decision.UNDECIDED
    if has_approve_reaction(reactions):
        return Decision.APPROVED
    if has_reject_reaction(reactions):
        return Decision.REJECTED
    return Decision.UNDECIDED


def has_decision(reactions: Iterable[Reaction]) -> bool:
    """Return True when a reviewer has already approved or rejected the message."""
    return classify_reactions(reactions) is not Decision.UNDECIDED

"""Per-field checks for promotion requests.

Every check is a pure function of the field text and the sender's roster
data. None of them touch the request message; label rewriting happens
afterwards in :mod:`promocheck.review.annotations`.
"""

from __future__ import annotations

from typing import Iterable

from promocheck.datatypes.review_datatypes import (
    Decision,
    FieldKind,
    FieldVerdict,
    Member,
    Role,
    Verdict,
)
from promocheck.review import patterns
from promocheck.util.logger import get_logger

logger = get_logger("field_validator")


def check_identity(value: str | None, member: Member) -> FieldVerdict:
    """
    Compare the claimed "Name Surname | ID" against the member's display name.

    Passes when the lowercased display name contains both the claimed name
    and the static ID. Rank prefixes and separators in the nickname are
    ignored by the containment test.
    """
    claim = patterns.match_identity(value)
    if claim is None:
        logger.debug("[IDENTITY] Pattern not matched: %r", value)
        return FieldVerdict(FieldKind.IDENTITY, Verdict.FAIL, "pattern not matched")

    display_name = member.display_name.lower()
    expected_name = claim.name.lower()

    if expected_name in display_name and claim.static_id in display_name:
        return FieldVerdict(FieldKind.IDENTITY, Verdict.PASS, "matched")

    logger.debug(
        "[IDENTITY] Mismatch:\n - Display Name: %s\n - Expected Name: %s\n - Expected ID: %s",
        display_name,
        expected_name,
        claim.static_id,
    )
    return FieldVerdict(FieldKind.IDENTITY, Verdict.FAIL, "name or id mismatch")


def check_rank(value: str | None, roles: Iterable[Role], request_decision: Decision) -> FieldVerdict | None:
    """
    Check that the member holds the rank role the request talks about.

    Before approval the member should still hold the current rank; once the
    request is approved the role for the new rank is expected instead. Rank
    roles are named ``"<level> | <title>"``.

    Returns ``None`` when the rank text cannot be parsed, leaving the field
    unmarked.
    """
    transition = patterns.match_rank_transition(value)
    if transition is None:
        logger.debug("[RANK] Pattern not matched, skipping: %r", value)
        return None

    level = transition.new_level if request_decision is Decision.APPROVED else transition.current_level
    expected_prefix = f"{level} |"
    role_names = [role.name for role in roles]

    if any(name.lower().startswith(expected_prefix) for name in role_names):
        return FieldVerdict(FieldKind.RANK, Verdict.PASS, f"has level {level}")

    logger.debug("[RANK] Member Roles: %s\n - Expected Role Start: %s", role_names, expected_prefix)
    return FieldVerdict(FieldKind.RANK, Verdict.FAIL, f"missing level {level}")


def check_sender_missing() -> FieldVerdict:
    """Verdict for a request whose sender has left (or never joined) the guild."""
    return FieldVerdict(FieldKind.SENDER, Verdict.FAIL, "not a guild member")

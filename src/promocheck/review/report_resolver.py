"""Resolution of the report link in a promotion request.

The report field should hold a jump link to the applicant's promotion report
in another channel. That report is itself approved or rejected by reviewers
through reactions, so the request's report check passes only when the linked
report carries an approval.
"""

from __future__ import annotations

from promocheck.datatypes.review_datatypes import Decision, FieldKind, FieldVerdict, Member, PromotionRequest, Verdict
from promocheck.review import patterns
from promocheck.review.errors import NetworkError
from promocheck.review.ports import MessageSource, RemoteFetch
from promocheck.review.reactions import classify_reactions
from promocheck.util.logger import get_logger

logger = get_logger("report_resolver")


def _verdict_from_reactions(report: PromotionRequest, reason: str) -> FieldVerdict:
    decision = classify_reactions(report.reactions)
    verdict = Verdict.PASS if decision is Decision.APPROVED else Verdict.FAIL
    return FieldVerdict(FieldKind.REPORT, verdict, f"{reason}: report {decision.value}")


class ReportLinkResolver:
    """
    Turns a report field value into a verdict.

    Resolution order:
    1. Parse a message jump link. Without one the verdict is FAIL, or
       INDETERMINATE when the text contains some other URL-like string.
    2. Look the linked message up in the local message cache.
    3. Fall back to fetching a small window of messages around the link,
       with bounded retries. Network failures become INDETERMINATE and are
       logged, never raised.

    Args:
        messages: Local message cache lookups.
        remote: Network fetch of messages around an ID.
        window_size: Number of messages to request around the target.
        max_retries: Attempts the remote fetch may make.
    """

    def __init__(
        self,
        messages: MessageSource,
        remote: RemoteFetch,
        window_size: int = 1,
        max_retries: int = 2,
    ) -> None:
        self._messages = messages
        self._remote = remote
        self._window_size = max(1, window_size)
        self._max_retries = max(1, max_retries)

    async def resolve(self, field_value: str | None, member: Member) -> FieldVerdict:
        reference = patterns.match_message_link(field_value)
        if reference is None:
            if patterns.contains_any_link(field_value):
                return FieldVerdict(FieldKind.REPORT, Verdict.INDETERMINATE, "unrecognized link")
            return FieldVerdict(FieldKind.REPORT, Verdict.FAIL, "no link")

        cached = self._messages.get_message(reference.channel_id, reference.message_id)
        if cached is not None:
            return _verdict_from_reactions(cached, "cached")

        try:
            window = await self._remote.fetch_messages_around(
                reference.channel_id,
                reference.message_id,
                self._window_size,
                self._max_retries,
            )
        except NetworkError as exc:
            logger.error("[REPORT] Failed to fetch report %s in channel %s: %s", reference.message_id, reference.channel_id, exc)
            return FieldVerdict(FieldKind.REPORT, Verdict.INDETERMINATE, "fetch failed")
        except Exception as exc:
            logger.exception("[REPORT] Unexpected error fetching report %s: %s", reference.message_id, exc)
            return FieldVerdict(FieldKind.REPORT, Verdict.INDETERMINATE, "fetch failed")

        report = next((m for m in window if m.message_id == reference.message_id), None)
        if report is None:
            return FieldVerdict(FieldKind.REPORT, Verdict.FAIL, "report not found")

        # A report that never mentions the applicant is someone else's report
        if str(member.user_id) not in report.content:
            logger.debug("[REPORT] Report %s does not mention member %s", reference.message_id, member.user_id)
            return FieldVerdict(FieldKind.REPORT, Verdict.FAIL, "report author mismatch")

        return _verdict_from_reactions(report, "fetched")

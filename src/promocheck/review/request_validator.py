"""
Review orchestration for promotion requests.

This module ties a request message to the sender's roster data, runs the
field checks and writes the resulting annotations back in a single edit.
It is the only place that talks to the gateway on behalf of a review run.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List

from promocheck.configuration.review_settings import ReviewSettings
from promocheck.datatypes.review_datatypes import (
    FieldKind,
    FieldVerdict,
    Member,
    PromotionRequest,
    RequestPanel,
    ReviewOutcome,
    Role,
)
from promocheck.review import annotations, field_validator, patterns
from promocheck.review.errors import AnnotationWriteError, NetworkError
from promocheck.review.ports import ReviewGateway
from promocheck.review.reactions import classify_reactions, has_decision
from promocheck.review.report_resolver import ReportLinkResolver
from promocheck.util.logger import get_logger

logger = get_logger("request_validator")


class RequestValidator:
    """
    Reviews promotion requests in the configured channel.

    Args:
        gateway: Discord access (messages, members, roles, fetch, edits).
        settings: Review configuration.
        sleep: Awaitable used for the delay between batch items.
    """

    def __init__(
        self,
        gateway: ReviewGateway,
        settings: ReviewSettings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._settings = settings
        self._sleep = sleep
        self._resolver = ReportLinkResolver(
            gateway,
            gateway,
            window_size=settings.report_fetch_window,
            max_retries=settings.report_fetch_retries,
        )

    @property
    def settings(self) -> ReviewSettings:
        return self._settings

    def is_candidate(self, request: PromotionRequest) -> bool:
        """Return True if the message is a plain request in the target channel with one embed."""
        if self._settings.target_channel_id is None or request.channel_id != self._settings.target_channel_id:
            return False
        if self._settings.target_guild_id is None or request.guild_id != self._settings.target_guild_id:
            return False
        if not request.is_default_type:
            return False
        panel = request.panel
        return panel is not None and bool(panel.fields)

    def _locate_fields(self, panel: RequestPanel) -> Dict[FieldKind, int] | None:
        located: Dict[FieldKind, int] = {}
        for kind, fragment in self._settings.field_labels.items():
            found = panel.find_field(fragment)
            if found is None:
                return None
            located[kind] = found[0]
        return located

    @staticmethod
    def _already_annotated(panel: RequestPanel, located: Dict[FieldKind, int]) -> bool:
        def annotated(kind: FieldKind) -> bool:
            return annotations.is_annotated(panel.fields[located[kind]].name)

        rank_applicable = patterns.match_rank_transition(panel.fields[located[FieldKind.RANK]].value) is not None
        return (
            annotated(FieldKind.IDENTITY)
            and annotated(FieldKind.REPORT)
            and (annotated(FieldKind.RANK) or not rank_applicable)
        )

    def _member_roles(self, request: PromotionRequest, member: Member) -> List[Role]:
        assert request.guild_id is not None
        roles: List[Role] = []
        for role_id in member.role_ids:
            role = self._gateway.get_role(request.guild_id, role_id)
            if role is not None:
                roles.append(role)
        return roles

    async def _compute_verdicts(
        self,
        request: PromotionRequest,
        panel: RequestPanel,
        located: Dict[FieldKind, int],
        member: Member | None,
    ) -> List[FieldVerdict]:
        if member is None:
            return [field_validator.check_sender_missing()]

        def value(kind: FieldKind) -> str:
            return panel.fields[located[kind]].value

        verdicts = [field_validator.check_identity(value(FieldKind.IDENTITY), member)]

        rank = field_validator.check_rank(
            value(FieldKind.RANK),
            self._member_roles(request, member),
            classify_reactions(request.reactions),
        )
        if rank is not None:
            verdicts.append(rank)

        verdicts.append(await self._resolver.resolve(value(FieldKind.REPORT), member))
        return verdicts

    async def check_request(self, request: PromotionRequest) -> ReviewOutcome:
        """
        Review a single request and annotate it if anything new was decided.

        Malformed messages and requests that were already handled are skipped
        without side effects. At most one embed edit is issued per call; an
        edit failure is logged and reported through ``ReviewOutcome.written``.
        """
        outcome = ReviewOutcome(message_id=request.message_id)

        panel = request.panel
        if not self.is_candidate(request) or panel is None:
            outcome.skipped = "not a request"
            return outcome

        located = self._locate_fields(panel)
        if located is None:
            outcome.skipped = "missing fields"
            return outcome

        sender_id = patterns.match_user_mention(panel.fields[located[FieldKind.SENDER]].value)
        if sender_id is None:
            outcome.skipped = "no sender mention"
            return outcome

        if not self._settings.ignore_already_checked:
            if has_decision(request.reactions):
                outcome.skipped = "already decided"
                return outcome
            if self._already_annotated(panel, located):
                outcome.skipped = "already annotated"
                return outcome

        assert request.guild_id is not None
        logger.info("[REVIEW] Checking request %s", request.message_id)

        member = await self._gateway.get_member(request.guild_id, sender_id)
        if member is None:
            # A sender that is still missing has nothing new to review
            if not self._settings.ignore_already_checked and annotations.is_annotated(
                panel.fields[located[FieldKind.SENDER]].name
            ):
                outcome.skipped = "already annotated"
                return outcome
            logger.info("[REVIEW][%s] Sender %s is not a guild member", request.message_id, sender_id)

        outcome.verdicts = await self._compute_verdicts(request, panel, located, member)
        for field_verdict in outcome.verdicts:
            logger.info(
                "[REVIEW][%s] %s: %s (%s)",
                request.message_id,
                field_verdict.kind.value,
                field_verdict.verdict.value,
                field_verdict.reason,
            )

        plan = annotations.plan_annotations(
            panel,
            located,
            {fv.kind: fv.verdict for fv in outcome.verdicts},
        )
        if not plan:
            logger.debug("[REVIEW][%s] Nothing new to annotate", request.message_id)
            return outcome

        index_to_kind = {index: kind for kind, index in located.items()}
        outcome.annotated_fields = [index_to_kind[index] for index in sorted(plan)]

        updated = annotations.apply_annotations(panel, plan)
        try:
            await self._gateway.write(request.channel_id, request.message_id, updated)
            outcome.written = True
        except AnnotationWriteError as exc:
            logger.error("[REVIEW][%s] Failed to write annotations: %s", request.message_id, exc)
        except Exception as exc:
            logger.exception("[REVIEW][%s] Unexpected error writing annotations: %s", request.message_id, exc)

        return outcome

    async def check_channel(self, only_newest: bool = False) -> List[ReviewOutcome]:
        """
        Review the most recent requests of the target channel.

        Requests are taken newest-first (one, or ``check_count``), then
        reviewed oldest-first one at a time with ``inter_item_delay_seconds``
        between them to stay under Discord rate limits.
        """
        channel_id = self._settings.target_channel_id
        if channel_id is None:
            logger.warning("[REVIEW] No target channel configured, skipping batch run")
            return []

        try:
            messages = await self._gateway.get_messages(channel_id, self._settings.history_scan_limit)
        except NetworkError as exc:
            logger.error("[REVIEW] Failed to read channel %s: %s", channel_id, exc)
            return []

        candidates = [message for message in messages if self.is_candidate(message)]
        selected = candidates[: 1 if only_newest else self._settings.check_count]
        selected.reverse()

        logger.debug("[REVIEW] Batch run over %d of %d candidate requests", len(selected), len(candidates))

        outcomes: List[ReviewOutcome] = []
        for request in selected:
            outcomes.append(await self.check_request(request))
            await self._sleep(self._settings.inter_item_delay_seconds)
        return outcomes

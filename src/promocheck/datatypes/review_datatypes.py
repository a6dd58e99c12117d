"""
Data structures for promotion request review.

A promotion request is a message in the review channel carrying one embed
(the "panel") whose fields hold the applicant's claimed identity, the rank
transition, a link to their promotion report and a mention of the sender.
The review engine reads these snapshots, computes a verdict per field and
rewrites field labels with a marker emoji.

Key types:
- `Decision`: tri-state outcome of a message's reactions.
- `Verdict`: per-field review outcome.
- `PromotionRequest`: read-only snapshot of a request message.
- `Member` / `Role`: roster data for the request's sender.
- `ReviewOutcome`: what a single review run decided and wrote.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence

from promocheck.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, RoleID, UserID


class Decision(Enum):
    """Reaction-derived decision on a message."""

    APPROVED = "approved"
    REJECTED = "rejected"
    UNDECIDED = "undecided"


class Verdict(Enum):
    """Review outcome for one embed field."""

    PASS = "pass"
    FAIL = "fail"
    INDETERMINATE = "indeterminate"


class FieldKind(Enum):
    """The four embed fields the reviewer knows how to locate."""

    IDENTITY = "identity"
    RANK = "rank"
    REPORT = "report"
    SENDER = "sender"


@dataclass(frozen=True, slots=True)
class Reaction:
    """A reaction on a message, reduced to its emoji name.

    Unicode emoji use the glyph itself as the name (``"✅"``); custom guild
    emoji use their registered name (``"custom_check_emoji"``).
    """

    emoji_name: str


@dataclass(frozen=True, slots=True)
class EmbedField:
    """One (label, value) pair from a request embed."""

    name: str
    value: str
    inline: bool = False


@dataclass(frozen=True, slots=True)
class RequestPanel:
    """The structured embed of a request.

    Attributes:
        fields: Embed fields in display order.
        source: Raw embed mapping (``discord.Embed.to_dict()``) used to rebuild
            the embed when labels change. Everything but the field names is
            written back untouched.
    """

    fields: tuple[EmbedField, ...]
    source: Mapping[str, Any] = field(default_factory=dict)

    def find_field(self, label_fragment: str) -> tuple[int, EmbedField] | None:
        """Return the first field whose label contains ``label_fragment``."""
        for index, embed_field in enumerate(self.fields):
            if label_fragment in embed_field.name:
                return index, embed_field
        return None

    def with_field_names(self, names: Mapping[int, str]) -> "RequestPanel":
        """Return a copy of this panel with the labels at the given indexes replaced."""
        fields = tuple(
            EmbedField(name=names.get(index, f.name), value=f.value, inline=f.inline)
            for index, f in enumerate(self.fields)
        )
        return RequestPanel(fields=fields, source=self.source)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to a Discord embed mapping."""
        payload: Dict[str, Any] = copy.deepcopy(dict(self.source))
        payload["fields"] = [
            {"name": f.name, "value": f.value, "inline": f.inline} for f in self.fields
        ]
        return payload


@dataclass(frozen=True, slots=True)
class PromotionRequest:
    """Read-only snapshot of a message that may be a promotion request.

    Attributes:
        message_id: ID of the message.
        channel_id: Channel the message was posted in.
        guild_id: Guild of the channel, ``None`` outside guilds.
        is_default_type: True for plain content messages (not replies to
            slash commands, pins, joins and so on).
        content: Raw message text.
        panels: Embeds attached to the message.
        reactions: Reactions currently on the message.
    """

    message_id: MessageID
    channel_id: ChannelID
    guild_id: GuildID | None
    is_default_type: bool = True
    content: str = ""
    panels: tuple[RequestPanel, ...] = ()
    reactions: tuple[Reaction, ...] = ()

    @property
    def panel(self) -> RequestPanel | None:
        """The single request panel, or ``None`` when the message has zero or several embeds."""
        if len(self.panels) != 1:
            return None
        return self.panels[0]


@dataclass(frozen=True, slots=True)
class Role:
    """A guild role. Rank roles are named like ``"3 | Сержант"``."""

    role_id: RoleID
    name: str


@dataclass(frozen=True, slots=True)
class Member:
    """Roster snapshot of a request's sender.

    Attributes:
        user_id: The member's user ID.
        display_name: Guild nickname, or the account username when unset.
        role_ids: IDs of the roles assigned to the member.
    """

    user_id: UserID
    display_name: str
    role_ids: tuple[RoleID, ...] = ()


@dataclass(frozen=True, slots=True)
class MessageReference:
    """A parsed ``https://discord.com/channels/<guild>/<channel>/<message>`` link."""

    host: str
    guild_id: GuildID
    channel_id: ChannelID
    message_id: MessageID


@dataclass(frozen=True, slots=True)
class IdentityClaim:
    """Name and static ID extracted from the identity field."""

    name: str
    static_id: str


@dataclass(frozen=True, slots=True)
class RankTransition:
    """Current and requested rank levels extracted from the rank field."""

    current_level: str
    new_level: str


@dataclass(frozen=True, slots=True)
class FieldVerdict:
    """A verdict for one field, with a short diagnostic reason for the logs."""

    kind: FieldKind
    verdict: Verdict
    reason: str = ""


@dataclass(slots=True)
class ReviewOutcome:
    """Result of reviewing one request.

    Attributes:
        message_id: Reviewed message.
        verdicts: Verdicts computed during this run (empty when skipped).
        annotated_fields: Field kinds whose labels were newly prefixed.
        written: True when the updated embed was handed to the writer and
            the write succeeded.
        skipped: Reason the request was skipped, empty when it was reviewed.
    """

    message_id: MessageID
    verdicts: List[FieldVerdict] = field(default_factory=list)
    annotated_fields: List[FieldKind] = field(default_factory=list)
    written: bool = False
    skipped: str = ""

    def verdict_for(self, kind: FieldKind) -> Verdict | None:
        for field_verdict in self.verdicts:
            if field_verdict.kind is kind:
                return field_verdict.verdict
        return None


def reactions_from_names(names: Sequence[str]) -> tuple[Reaction, ...]:
    """Build a reaction tuple from emoji names."""
    return tuple(Reaction(emoji_name=name) for name in names)

"""
Pytest configuration and fixtures for Promocheck tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from promocheck.configuration.review_settings import ReviewSettings  # noqa: E402
from promocheck.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, RoleID, UserID  # noqa: E402
from promocheck.datatypes.review_datatypes import (  # noqa: E402
    EmbedField,
    Member,
    PromotionRequest,
    RequestPanel,
    Role,
    reactions_from_names,
)
from promocheck.review.errors import AnnotationWriteError, NetworkError  # noqa: E402

GUILD_ID = GuildID(1274111070415487097)
CHANNEL_ID = ChannelID(1280952569946177629)
REPORT_CHANNEL_ID = ChannelID(1280952569946170000)
SENDER_ID = UserID(450994494247010314)

IDENTITY_LABEL = "Имя Фамилия | Static ID"
RANK_LABEL = "На какой ранг повышаетесь"
REPORT_LABEL = "Отчёт на повышение"
SENDER_LABEL = "Отправил(а)"


def report_link(message_id: int, channel_id: ChannelID = REPORT_CHANNEL_ID) -> str:
    return f"https://discord.com/channels/{GUILD_ID}/{channel_id}/{message_id}"


class FakeGateway:
    """In-memory stand-in for the Discord review gateway."""

    def __init__(self):
        self.messages: list[PromotionRequest] = []  # newest first
        self.cached: dict[MessageID, PromotionRequest] = {}
        self.remote: dict[MessageID, list[PromotionRequest]] = {}
        self.members: dict[UserID, Member] = {}
        self.roles: dict[RoleID, Role] = {}
        self.remote_error: Exception | None = None
        self.write_error: Exception | None = None
        self.fetch_calls: list[tuple] = []
        self.writes: list[tuple[ChannelID, MessageID, RequestPanel]] = []
        self.member_lookups: list[UserID] = []

    def add_member(self, display_name: str, role_names=(), user_id: UserID = SENDER_ID) -> Member:
        role_ids = []
        for offset, name in enumerate(role_names):
            role_id = RoleID(900 + len(self.roles) + offset)
            self.roles[role_id] = Role(role_id=role_id, name=name)
            role_ids.append(role_id)
        member = Member(user_id=user_id, display_name=display_name, role_ids=tuple(role_ids))
        self.members[user_id] = member
        return member

    async def get_messages(self, channel_id, limit):
        return self.messages[:limit]

    def get_message(self, channel_id, message_id):
        return self.cached.get(message_id)

    async def get_member(self, guild_id, user_id):
        self.member_lookups.append(user_id)
        return self.members.get(user_id)

    def get_role(self, guild_id, role_id):
        return self.roles.get(role_id)

    async def fetch_messages_around(self, channel_id, message_id, window_size, max_retries):
        self.fetch_calls.append((channel_id, message_id, window_size, max_retries))
        if self.remote_error is not None:
            raise self.remote_error
        return list(self.remote.get(message_id, []))

    async def write(self, channel_id, message_id, panel):
        self.writes.append((channel_id, message_id, panel))
        if self.write_error is not None:
            raise self.write_error

    def apply_writes(self) -> None:
        """Replace stored messages with their last written embed, like Discord would."""
        latest = {message_id: panel for _, message_id, panel in self.writes}
        self.messages = [
            PromotionRequest(
                message_id=m.message_id,
                channel_id=m.channel_id,
                guild_id=m.guild_id,
                is_default_type=m.is_default_type,
                content=m.content,
                panels=(latest[m.message_id],) if m.message_id in latest else m.panels,
                reactions=m.reactions,
            )
            for m in self.messages
        ]


def build_request(
    message_id: int = 1001,
    identity: str = "Иван Петров 1234",
    rank: str = "Стрелок [1] → Сержант [2]",
    report: str = "нет отчёта",
    sender: str = f"<@{SENDER_ID}>",
    reactions=(),
    labels=(IDENTITY_LABEL, RANK_LABEL, REPORT_LABEL, SENDER_LABEL),
    channel_id: ChannelID = CHANNEL_ID,
    guild_id: GuildID | None = GUILD_ID,
    is_default_type: bool = True,
    content: str = "",
    panels=None,
) -> PromotionRequest:
    if panels is None:
        values = (identity, rank, report, sender)
        fields = tuple(EmbedField(name=label, value=value) for label, value in zip(labels, values))
        panels = (RequestPanel(fields=fields, source={"title": "Запрос на повышение", "type": "rich"}),)
    return PromotionRequest(
        message_id=MessageID(message_id),
        channel_id=channel_id,
        guild_id=guild_id,
        is_default_type=is_default_type,
        content=content,
        panels=tuple(panels),
        reactions=reactions_from_names(reactions),
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def make_report_link():
    return report_link


@pytest.fixture
def sender_id() -> UserID:
    return SENDER_ID


@pytest.fixture
def target_channel_id() -> ChannelID:
    return CHANNEL_ID


@pytest.fixture
def report_channel_id() -> ChannelID:
    return REPORT_CHANNEL_ID


@pytest.fixture
def review_settings() -> ReviewSettings:
    return ReviewSettings(
        {
            "target_guild_id": str(GUILD_ID),
            "target_channel_id": str(CHANNEL_ID),
            "check_count": 5,
            "inter_item_delay_seconds": 0,
        }
    )


@pytest.fixture
def network_error() -> NetworkError:
    return NetworkError("connection reset")


@pytest.fixture
def write_error() -> AnnotationWriteError:
    return AnnotationWriteError("403 Forbidden")

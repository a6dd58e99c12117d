"""
Collaborator interfaces used by the review engine.

The engine never touches ``discord.Bot`` directly. It is handed an object
implementing :class:`ReviewGateway` (the Discord implementation lives in
``promocheck.bot.gateway``), which keeps the engine testable with plain
fakes.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, runtime_checkable

from promocheck.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, RoleID, UserID
from promocheck.datatypes.review_datatypes import Member, PromotionRequest, RequestPanel, Role


@runtime_checkable
class MessageSource(Protocol):
    async def get_messages(self, channel_id: ChannelID, limit: int) -> Sequence[PromotionRequest]:
        """Return up to ``limit`` recent messages of a channel, newest first."""
        ...

    def get_message(self, channel_id: ChannelID, message_id: MessageID) -> PromotionRequest | None:
        """Return a message from the local cache without any network access."""
        ...


@runtime_checkable
class MemberSource(Protocol):
    async def get_member(self, guild_id: GuildID, user_id: UserID) -> Member | None:
        """Return the guild member, or ``None`` if the user is not in the guild."""
        ...


@runtime_checkable
class RoleSource(Protocol):
    def get_role(self, guild_id: GuildID, role_id: RoleID) -> Role | None:
        ...


@runtime_checkable
class RemoteFetch(Protocol):
    async def fetch_messages_around(
        self,
        channel_id: ChannelID,
        message_id: MessageID,
        window_size: int,
        max_retries: int,
    ) -> List[PromotionRequest]:
        """Fetch a small window of messages around ``message_id``.

        Raises:
            NetworkError: When every attempt failed or timed out.
        """
        ...


@runtime_checkable
class AnnotationWriter(Protocol):
    async def write(self, channel_id: ChannelID, message_id: MessageID, panel: RequestPanel) -> None:
        """Replace the request's embed with ``panel``.

        Raises:
            AnnotationWriteError: When Discord rejects the edit.
        """
        ...


@runtime_checkable
class ReviewGateway(MessageSource, MemberSource, RoleSource, RemoteFetch, AnnotationWriter, Protocol):
    """Everything the request validator needs from the outside world."""

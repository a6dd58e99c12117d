"""
Discord implementation of the review gateway.

Converts py-cord objects into the review engine's snapshots and performs
the few Discord calls a review run needs: channel history, message cache
lookups, member/role lookups, the report fetch and the embed edit.
"""

from __future__ import annotations

import asyncio
from typing import List, Sequence

import discord

from promocheck.configuration.review_settings import ReviewSettings
from promocheck.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, RoleID, UserID
from promocheck.datatypes.review_datatypes import (
    EmbedField,
    Member,
    PromotionRequest,
    Reaction,
    RequestPanel,
    Role,
)
from promocheck.review.errors import AnnotationWriteError, NetworkError
from promocheck.util.logger import get_logger

logger = get_logger("review_gateway")


def reaction_name(reaction: discord.Reaction) -> str:
    """Return the emoji name of a reaction (the glyph for unicode emoji)."""
    emoji = reaction.emoji
    if isinstance(emoji, str):
        return emoji
    return getattr(emoji, "name", None) or ""


def convert_message(message: discord.Message) -> PromotionRequest:
    """Snapshot a Discord message for review."""
    panels = tuple(
        RequestPanel(
            fields=tuple(
                EmbedField(name=f.name or "", value=f.value or "", inline=bool(f.inline))
                for f in embed.fields
            ),
            source=embed.to_dict(),
        )
        for embed in message.embeds
    )
    return PromotionRequest(
        message_id=MessageID.from_message(message),
        channel_id=ChannelID(message.channel.id),
        guild_id=GuildID.from_guild(message.guild) if message.guild else None,
        is_default_type=message.type == discord.MessageType.default,
        content=message.content or "",
        panels=panels,
        reactions=tuple(Reaction(emoji_name=reaction_name(r)) for r in message.reactions),
    )


def convert_member(member: discord.Member) -> Member:
    return Member(
        user_id=UserID.from_user(member),
        display_name=member.nick or member.name,
        role_ids=tuple(RoleID.from_role(role) for role in member.roles),
    )


class DiscordReviewGateway:
    """
    Review gateway backed by a py-cord bot.

    Args:
        bot: Connected Discord bot.
        settings: Review configuration (fetch timeout).
    """

    def __init__(self, bot: discord.Bot, settings: ReviewSettings) -> None:
        self._bot = bot
        self._settings = settings
        self._warned_edit_forbidden = False

    async def _resolve_channel(self, channel_id: ChannelID):
        channel = self._bot.get_channel(channel_id.to_int())
        if channel is None:
            channel = await self._bot.fetch_channel(channel_id.to_int())
        # Categories and forums have no message history
        if not hasattr(channel, "history"):
            raise NetworkError(f"Channel {channel_id} cannot hold messages")
        return channel

    # --------------------------
    # MessageSource
    # --------------------------
    async def get_messages(self, channel_id: ChannelID, limit: int) -> Sequence[PromotionRequest]:
        try:
            channel = await self._resolve_channel(channel_id)
            return [convert_message(message) async for message in channel.history(limit=limit)]
        except discord.HTTPException as exc:
            raise NetworkError(f"Failed to read history of channel {channel_id}: {exc}") from exc

    def get_message(self, channel_id: ChannelID, message_id: MessageID) -> PromotionRequest | None:
        message = discord.utils.get(self._bot.cached_messages, id=message_id.to_int())
        if message is None or message.channel.id != channel_id.to_int():
            return None
        return convert_message(message)

    # --------------------------
    # MemberSource / RoleSource
    # --------------------------
    async def get_member(self, guild_id: GuildID, user_id: UserID) -> Member | None:
        guild = self._bot.get_guild(guild_id.to_int())
        if guild is None:
            logger.warning("[GATEWAY] Guild %s is not available", guild_id)
            return None

        member = guild.get_member(user_id.to_int())
        if member is None:
            try:
                member = await guild.fetch_member(user_id.to_int())
            except discord.NotFound:
                return None
            except discord.HTTPException as exc:
                logger.warning("[GATEWAY] Failed to fetch member %s: %s", user_id, exc)
                return None
        return convert_member(member)

    def get_role(self, guild_id: GuildID, role_id: RoleID) -> Role | None:
        guild = self._bot.get_guild(guild_id.to_int())
        if guild is None:
            return None
        role = guild.get_role(role_id.to_int())
        if role is None:
            return None
        return Role(role_id=RoleID.from_role(role), name=role.name)

    # --------------------------
    # RemoteFetch
    # --------------------------
    async def fetch_messages_around(
        self,
        channel_id: ChannelID,
        message_id: MessageID,
        window_size: int,
        max_retries: int,
    ) -> List[PromotionRequest]:
        timeout = self._settings.report_fetch_timeout_seconds
        last_error: Exception | None = None

        for attempt in range(1, max(1, max_retries) + 1):
            try:
                channel = await self._resolve_channel(channel_id)
                history = channel.history(limit=window_size, around=discord.Object(id=message_id.to_int()))
                messages = await asyncio.wait_for(history.flatten(), timeout=timeout)
                return [convert_message(message) for message in messages]
            except (discord.Forbidden, discord.NotFound) as exc:
                # Retrying will not grant access or bring the channel back
                raise NetworkError(f"Cannot read channel {channel_id}: {exc}") from exc
            except (discord.HTTPException, asyncio.TimeoutError) as exc:
                last_error = exc
                logger.warning(
                    "[GATEWAY] Fetch around %s in %s failed (attempt %d/%d): %s",
                    message_id, channel_id, attempt, max_retries, exc,
                )

        raise NetworkError(f"Fetching messages around {message_id} failed: {last_error}")

    # --------------------------
    # AnnotationWriter
    # --------------------------
    async def write(self, channel_id: ChannelID, message_id: MessageID, panel: RequestPanel) -> None:
        try:
            channel = await self._resolve_channel(channel_id)
            if not hasattr(channel, "get_partial_message"):
                raise AnnotationWriteError(f"Channel {channel_id} does not support message edits")
            partial = channel.get_partial_message(message_id.to_int())  # type: ignore[attr-defined]
            await partial.edit(embeds=[discord.Embed.from_dict(panel.to_dict())])
        except discord.Forbidden as exc:
            if not self._warned_edit_forbidden:
                self._warned_edit_forbidden = True
                logger.warning(
                    "[GATEWAY] Discord refused to edit request %s in %s: %s. Annotations can only be written "
                    "to requests posted by this bot; requests from other authors will stay unmarked.",
                    message_id, channel_id, exc,
                )
            raise AnnotationWriteError(f"Editing message {message_id} was forbidden: {exc}") from exc
        except discord.HTTPException as exc:
            raise AnnotationWriteError(f"Editing message {message_id} failed: {exc}") from exc
        except NetworkError as exc:
            raise AnnotationWriteError(str(exc)) from exc

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from promocheck.bot.gateway import DiscordReviewGateway, convert_member, convert_message, reaction_name
from promocheck.configuration.review_settings import ReviewSettings
from promocheck.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, RoleID, UserID
from promocheck.datatypes.review_datatypes import Reaction
from promocheck.review.errors import AnnotationWriteError, NetworkError


def _http_error(cls=discord.HTTPException, status=500, text="boom"):
    return cls(SimpleNamespace(status=status, reason="Error"), text)


def _embed() -> discord.Embed:
    embed = discord.Embed(title="Запрос на повышение", color=0x2B2D31)
    embed.add_field(name="Имя Фамилия | Static ID", value="Иван Петров 1234", inline=False)
    embed.add_field(name="Отправил(а)", value="<@42>", inline=True)
    return embed


def _message(message_id=1, channel_id=10, guild_id=100, content="", reactions=(), embeds=None, msg_type=None):
    return SimpleNamespace(
        id=message_id,
        channel=SimpleNamespace(id=channel_id),
        guild=SimpleNamespace(id=guild_id) if guild_id else None,
        type=msg_type or discord.MessageType.default,
        content=content,
        embeds=[_embed()] if embeds is None else embeds,
        reactions=list(reactions),
    )


def _bot(channel=None, cached=(), guild=None):
    return SimpleNamespace(
        get_channel=MagicMock(return_value=channel),
        fetch_channel=AsyncMock(return_value=channel),
        cached_messages=list(cached),
        get_guild=MagicMock(return_value=guild),
    )


@pytest.fixture
def settings() -> ReviewSettings:
    return ReviewSettings({"report_fetch_timeout_seconds": 1})


def test_reaction_name_for_unicode_and_custom_emoji():
    assert reaction_name(SimpleNamespace(emoji="✅")) == "✅"
    assert reaction_name(SimpleNamespace(emoji=SimpleNamespace(name="custom_check"))) == "custom_check"
    assert reaction_name(SimpleNamespace(emoji=SimpleNamespace(name=None))) == ""


def test_convert_message_snapshot():
    message = _message(
        content="Отчёт <@42>",
        reactions=[SimpleNamespace(emoji="✅"), SimpleNamespace(emoji=SimpleNamespace(name="x"))],
    )

    request = convert_message(message)

    assert request.message_id == 1
    assert request.channel_id == 10
    assert request.guild_id == 100
    assert request.is_default_type is True
    assert request.content == "Отчёт <@42>"
    assert request.reactions == (Reaction("✅"), Reaction("x"))
    panel = request.panel
    assert panel is not None
    assert [f.name for f in panel.fields] == ["Имя Фамилия | Static ID", "Отправил(а)"]
    assert panel.fields[1].inline is True
    assert panel.source["title"] == "Запрос на повышение"


def test_convert_message_non_default_type_and_no_guild():
    request = convert_message(_message(guild_id=None, msg_type=discord.MessageType.pins_add, embeds=[]))
    assert request.guild_id is None
    assert request.is_default_type is False
    assert request.panel is None


def test_convert_member_prefers_nick():
    member = SimpleNamespace(id=42, nick="Иван Петров | 1234", name="ivan", roles=[SimpleNamespace(id=7, name="1 | Стрелок")])
    converted = convert_member(member)
    assert converted.user_id == 42
    assert converted.display_name == "Иван Петров | 1234"
    assert converted.role_ids == (RoleID(7),)

    assert convert_member(SimpleNamespace(id=42, nick=None, name="ivan", roles=[])).display_name == "ivan"


@pytest.mark.asyncio
async def test_get_messages_reads_history(settings):
    async def history(limit):
        for message_id in (3, 2, 1)[:limit]:
            yield _message(message_id=message_id)

    channel = SimpleNamespace(history=history)
    gateway = DiscordReviewGateway(_bot(channel=channel), settings)

    requests = await gateway.get_messages(ChannelID(10), 2)

    assert [int(r.message_id) for r in requests] == [3, 2]


@pytest.mark.asyncio
async def test_get_messages_wraps_http_errors(settings):
    bot = _bot(channel=None)
    bot.fetch_channel = AsyncMock(side_effect=_http_error(discord.Forbidden, 403))
    gateway = DiscordReviewGateway(bot, settings)

    with pytest.raises(NetworkError):
        await gateway.get_messages(ChannelID(10), 5)


def test_get_message_uses_cache_only(settings):
    cached = [_message(message_id=5, channel_id=10), _message(message_id=6, channel_id=11)]
    gateway = DiscordReviewGateway(_bot(cached=cached), settings)

    assert gateway.get_message(ChannelID(10), MessageID(5)).message_id == 5
    assert gateway.get_message(ChannelID(10), MessageID(6)) is None
    assert gateway.get_message(ChannelID(10), MessageID(7)) is None


@pytest.mark.asyncio
async def test_get_member_falls_back_to_fetch_and_handles_not_found(settings):
    fetched = SimpleNamespace(id=42, nick=None, name="ivan", roles=[])
    guild = SimpleNamespace(get_member=MagicMock(return_value=None), fetch_member=AsyncMock(return_value=fetched))
    gateway = DiscordReviewGateway(_bot(guild=guild), settings)

    member = await gateway.get_member(GuildID(100), UserID(42))
    assert member is not None and member.display_name == "ivan"

    guild.fetch_member = AsyncMock(side_effect=_http_error(discord.NotFound, 404, "Unknown Member"))
    assert await gateway.get_member(GuildID(100), UserID(42)) is None


@pytest.mark.asyncio
async def test_get_member_without_guild(settings):
    gateway = DiscordReviewGateway(_bot(guild=None), settings)
    assert await gateway.get_member(GuildID(100), UserID(42)) is None


def test_get_role(settings):
    guild = SimpleNamespace(get_role=MagicMock(side_effect=lambda rid: SimpleNamespace(id=rid, name="2 | Сержант") if rid == 7 else None))
    gateway = DiscordReviewGateway(_bot(guild=guild), settings)

    role = gateway.get_role(GuildID(100), RoleID(7))
    assert role is not None and role.name == "2 | Сержант"
    assert gateway.get_role(GuildID(100), RoleID(8)) is None


@pytest.mark.asyncio
async def test_fetch_messages_around_returns_window(settings):
    history = MagicMock(return_value=SimpleNamespace(flatten=AsyncMock(return_value=[_message(message_id=9)])))
    gateway = DiscordReviewGateway(_bot(channel=SimpleNamespace(history=history)), settings)

    window = await gateway.fetch_messages_around(ChannelID(10), MessageID(9), 1, 2)

    assert [int(m.message_id) for m in window] == [9]
    kwargs = history.call_args.kwargs
    assert kwargs["limit"] == 1
    assert kwargs["around"].id == 9


@pytest.mark.asyncio
async def test_fetch_messages_around_retries_then_raises(settings):
    flatten = AsyncMock(side_effect=asyncio.TimeoutError())
    history = MagicMock(return_value=SimpleNamespace(flatten=flatten))
    gateway = DiscordReviewGateway(_bot(channel=SimpleNamespace(history=history)), settings)

    with pytest.raises(NetworkError):
        await gateway.fetch_messages_around(ChannelID(10), MessageID(9), 1, 2)

    assert flatten.await_count == 2


@pytest.mark.asyncio
async def test_fetch_messages_around_does_not_retry_forbidden(settings):
    flatten = AsyncMock(side_effect=_http_error(discord.Forbidden, 403))
    history = MagicMock(return_value=SimpleNamespace(flatten=flatten))
    gateway = DiscordReviewGateway(_bot(channel=SimpleNamespace(history=history)), settings)

    with pytest.raises(NetworkError):
        await gateway.fetch_messages_around(ChannelID(10), MessageID(9), 1, 2)

    assert flatten.await_count == 1


@pytest.mark.asyncio
async def test_write_edits_embed(settings):
    request = convert_message(_message(message_id=5))
    panel = request.panel.with_field_names({0: "✅ Имя Фамилия | Static ID"})

    partial = SimpleNamespace(edit=AsyncMock())
    channel = SimpleNamespace(history=MagicMock(), get_partial_message=MagicMock(return_value=partial))
    gateway = DiscordReviewGateway(_bot(channel=channel), settings)

    await gateway.write(ChannelID(10), MessageID(5), panel)

    channel.get_partial_message.assert_called_once_with(5)
    embeds = partial.edit.await_args.kwargs["embeds"]
    assert embeds[0].title == "Запрос на повышение"
    assert [f.name for f in embeds[0].fields] == ["✅ Имя Фамилия | Static ID", "Отправил(а)"]


@pytest.mark.asyncio
async def test_write_failure_raises_annotation_error(settings):
    request = convert_message(_message(message_id=5))
    partial = SimpleNamespace(edit=AsyncMock(side_effect=_http_error(discord.Forbidden, 403, "Cannot edit a message authored by another user")))
    channel = SimpleNamespace(history=MagicMock(), get_partial_message=MagicMock(return_value=partial))
    gateway = DiscordReviewGateway(_bot(channel=channel), settings)

    with pytest.raises(AnnotationWriteError):
        await gateway.write(ChannelID(10), MessageID(5), request.panel)


@pytest.mark.asyncio
async def test_forbidden_edit_warns_once_about_foreign_authors(settings, monkeypatch):
    from promocheck.bot import gateway as gateway_module

    warning = MagicMock()
    monkeypatch.setattr(gateway_module.logger, "warning", warning)

    request = convert_message(_message(message_id=5))
    partial = SimpleNamespace(edit=AsyncMock(side_effect=_http_error(discord.Forbidden, 403, "Cannot edit a message authored by another user")))
    channel = SimpleNamespace(history=MagicMock(), get_partial_message=MagicMock(return_value=partial))
    gateway = DiscordReviewGateway(_bot(channel=channel), settings)

    for _ in range(2):
        with pytest.raises(AnnotationWriteError):
            await gateway.write(ChannelID(10), MessageID(5), request.panel)

    warning.assert_called_once()
    assert "posted by this bot" in warning.call_args.args[0]


@pytest.mark.asyncio
async def test_server_error_on_edit_does_not_warn_about_authors(settings, monkeypatch):
    from promocheck.bot import gateway as gateway_module

    warning = MagicMock()
    monkeypatch.setattr(gateway_module.logger, "warning", warning)

    request = convert_message(_message(message_id=5))
    partial = SimpleNamespace(edit=AsyncMock(side_effect=_http_error(discord.HTTPException, 500)))
    channel = SimpleNamespace(history=MagicMock(), get_partial_message=MagicMock(return_value=partial))
    gateway = DiscordReviewGateway(_bot(channel=channel), settings)

    with pytest.raises(AnnotationWriteError):
        await gateway.write(ChannelID(10), MessageID(5), request.panel)

    warning.assert_not_called()

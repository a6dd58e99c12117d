"""Review listener Cog for Promocheck.

Schedules promotion request reviews in response to Discord events:
- ``on_message`` in the review channel reviews the newest request after a
  short debounce;
- ``on_ready`` reviews the last ``check_count`` requests once caches settle;
- ``/review check`` runs the same batch review on demand;
- with experimental features enabled, a reaction added in the review
  channel re-runs the batch review.
"""

import asyncio

import discord
from discord import Option
from discord.ext import commands

from promocheck.bot.gateway import DiscordReviewGateway
from promocheck.configuration.app_configuration import app_config
from promocheck.configuration.review_settings import ReviewSettings
from promocheck.datatypes.discord_datatypes import ChannelID
from promocheck.review.request_validator import RequestValidator
from promocheck.review.scheduler import ReviewScheduler
from promocheck.util.logger import get_logger

logger = get_logger("review_listener_cog")


class ReviewListenerCog(commands.Cog):
    """Cog that turns Discord events into scheduled review runs."""

    review = discord.SlashCommandGroup("review", "Promotion request review commands")

    def __init__(self, discord_bot_instance: discord.Bot, settings: ReviewSettings | None = None):
        """
        Initialize the review listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        settings:
            Review settings; defaults to the ``review`` block of the app config.
        """
        self.bot = discord_bot_instance
        self.settings = settings or app_config.review
        self.gateway = DiscordReviewGateway(discord_bot_instance, self.settings)
        self.validator = RequestValidator(self.gateway, self.settings)
        self.scheduler = ReviewScheduler(self._run_review, name="REVIEW")
        self._shutdown_task: asyncio.Task | None = None
        logger.info("[REVIEW LISTENER] Review listener cog loaded")

    async def _run_review(self, only_newest: bool) -> None:
        outcomes = await self.validator.check_channel(only_newest=only_newest)
        written = sum(1 for outcome in outcomes if outcome.written)
        logger.debug("[REVIEW LISTENER] Run finished: %d reviewed, %d annotated", len(outcomes), written)

    def _is_target_channel(self, channel_id: int | None) -> bool:
        target = self.settings.target_channel_id
        return target is not None and channel_id is not None and target == channel_id

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Review the latest requests once the bot is connected."""
        target = self.settings.target_channel_id
        if target is None:
            logger.warning("[REVIEW LISTENER] review.target_channel_id is not configured; reviews are disabled")
            return
        self.scheduler.schedule(target, self.settings.settle_seconds)

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """Review a newly posted request after the debounce delay."""
        if not self._is_target_channel(message.channel.id):
            return
        if message.type != discord.MessageType.default:
            return
        self.scheduler.schedule(ChannelID(message.channel.id), self.settings.debounce_seconds, only_newest=True)

    @commands.Cog.listener(name="on_raw_reaction_add")
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        """Re-check requests when a reviewer reacts (experimental)."""
        if not self.settings.experimental_features:
            return
        if not self._is_target_channel(payload.channel_id):
            return
        if self.bot.user is not None and payload.user_id == self.bot.user.id:
            return
        self.scheduler.schedule(ChannelID(payload.channel_id), self.settings.settle_seconds)

    @review.command(name="check", description="Review the latest promotion requests now")
    async def check(
        self,
        application_context: discord.ApplicationContext,
        count: Option(int, "Number of requests to review.", min_value=1, max_value=50, default=0),  # type: ignore
    ) -> None:
        """Run a batch review immediately and report what was annotated."""
        await application_context.defer(ephemeral=True)

        if self.settings.target_channel_id is None:
            await application_context.send_followup(content="❌ The review channel is not configured.", ephemeral=True)
            return

        validator = self.validator
        if count:
            overridden = ReviewSettings({**self.settings.as_dict(), "check_count": count})
            validator = RequestValidator(self.gateway, overridden)

        try:
            outcomes = await self.scheduler.run_exclusive(validator.check_channel)
        except Exception as exc:
            logger.exception("[REVIEW LISTENER] Manual review failed: %s", exc)
            await application_context.send_followup(content="❌ Review failed, see the bot logs.", ephemeral=True)
            return

        written = sum(1 for outcome in outcomes if outcome.written)
        await application_context.send_followup(
            content=f"✅ Reviewed {len(outcomes)} request(s), annotated {written}.",
            ephemeral=True,
        )

    def cog_unload(self) -> None:
        for channel_id in self.scheduler.pending_channels:
            logger.debug("[REVIEW LISTENER] Dropping pending run for channel %s", channel_id)
        self._shutdown_task = self.bot.loop.create_task(self.scheduler.shutdown())
        logger.info("[REVIEW LISTENER] Stopped")


def setup(discord_bot_instance):
    """Register the ReviewListenerCog with the bot."""
    discord_bot_instance.add_cog(ReviewListenerCog(discord_bot_instance))

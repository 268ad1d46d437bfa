"""Feedback widget cog."""

import logging

import discord
from discord import app_commands
from discord.ext import commands

from slack_feedback.config import Settings, settings
from slack_feedback.image_host import ImageHostClient, ImageHostConfig
from slack_feedback.ui.views import TriggerView
from slack_feedback.webhook import get_webhook_client

from ._delivery import AttachmentUploader, BackgroundTasks, WebhookSubmitter
from ._panel import TRIGGER_CUSTOM_ID, FeedbackSession


def page_url_for(interaction: discord.Interaction) -> str:
    """Address of the place the widget was opened from."""
    guild = interaction.guild_id or "@me"
    return f"https://discord.com/channels/{guild}/{interaction.channel_id}"


class Feedback(commands.Cog):
    """Cog hosting one feedback widget per user."""

    def __init__(self, bot: commands.Bot, config: Settings | None = None) -> None:
        """Initialize the Feedback cog."""
        self.bot = bot
        self.settings = config or settings
        self.log = logging.getLogger(__name__)
        self.sessions: dict[int, FeedbackSession] = {}
        self.tasks = BackgroundTasks()
        self.submitter = WebhookSubmitter(get_webhook_client, self.tasks)

        self.image_host: ImageHostClient | None = None
        self.uploader: AttachmentUploader | None = None
        if self.settings.image_upload_enabled:
            self.image_host = ImageHostClient(
                self.settings.image_host_url,
                ImageHostConfig(
                    token=self.settings.image_host_token,
                    timeout_seconds=self.settings.image_host_timeout_seconds,
                    max_bytes=self.settings.max_image_bytes,
                ),
            )
            self.uploader = AttachmentUploader(self.image_host, self.tasks)

        self.trigger_view = self._make_trigger_view()
        self.log.info("Feedback cog initialized (image upload %s)", "on" if self.uploader else "off")

    def _make_trigger_view(self) -> TriggerView:
        return TriggerView(
            self.toggle,
            custom_id=TRIGGER_CUSTOM_ID,
            label=self.settings.button_text,
            style_overrides=self.settings.trigger_styles,
        )

    # ========================================================================================
    # LIFECYCLE
    # ========================================================================================

    async def cog_load(self) -> None:
        """Re-attach the trigger button to messages posted before a restart."""
        self.bot.add_view(self.trigger_view)

    async def cog_unload(self) -> None:
        """Unmount every widget and release HTTP clients."""
        self.trigger_view.stop()
        for session in self.sessions.values():
            session.close()
        self.sessions.clear()

        await self.tasks.wait()
        if self.image_host is not None:
            await self.image_host.close()

    def session_for(self, user_id: int) -> FeedbackSession:
        session = self.sessions.get(user_id)
        if session is None or session.widget.destroyed:
            session = FeedbackSession(
                self.bot,
                user_id,
                settings=self.settings,
                submitter=self.submitter,
                uploader=self.uploader,
                tasks=self.tasks,
                on_release=self._forget,
            )
            self.sessions[user_id] = session
        return session

    def _forget(self, session: FeedbackSession) -> None:
        if self.sessions.get(session.user_id) is session:
            del self.sessions[session.user_id]
            self.log.debug("Released feedback session for user %s", session.user_id)

    # ========================================================================================
    # COMMANDS & LISTENERS
    # ========================================================================================

    @app_commands.command(name="feedback", description="Send feedback to the team's Slack channel")
    async def feedback(self, interaction: discord.Interaction) -> None:
        """Post the feedback trigger button."""
        if self.settings.disabled:
            await interaction.response.send_message("Feedback is currently disabled.", ephemeral=True)
            return

        try:
            view = self._make_trigger_view()
            await view.reply(interaction, content="Have something to tell us? Press the button below!")
        except Exception:
            self.log.exception(
                "Failed to process feedback command for user %s (ID: %s)",
                interaction.user,
                interaction.user.id,
            )

            error_msg = "❌ **Something went wrong!**\nPlease try again later."
            if interaction.response.is_done():
                await interaction.followup.send(error_msg, ephemeral=True)
            else:
                await interaction.response.send_message(error_msg, ephemeral=True)

    async def toggle(self, interaction: discord.Interaction) -> None:
        """Open or close the caller's widget."""
        if self.settings.disabled:
            await interaction.response.send_message("Feedback is currently disabled.", ephemeral=True)
            return

        session = self.session_for(interaction.user.id)
        session.page_url = page_url_for(interaction)

        if not session.widget.state.is_open:
            # The next panel replaces the old one
            session.detach()
            session.widget.toggle()
            await session.show(interaction)
            self.log.info("Feedback widget opened by user %s (ID: %s)", interaction.user, interaction.user.id)
            return

        session.widget.toggle()
        await interaction.response.defer()

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        """Deliver component clicks to the clicking user's widget for outside-click dismissal."""
        if interaction.type is not discord.InteractionType.component:
            return

        session = self.sessions.get(interaction.user.id)
        if session is None or not session.widget.state.is_open:
            return

        data = interaction.data or {}
        custom_id = data.get("custom_id")
        if isinstance(custom_id, str):
            session.dispatch_click(custom_id)


async def setup(bot: commands.Bot) -> None:
    """Set up the Feedback cog."""
    await bot.add_cog(Feedback(bot))


"""Per-user widget session and the ephemeral panel that renders it."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord
from discord import ui

from slack_feedback.ui import embeds
from slack_feedback.ui.forms import ModelModal
from slack_feedback.ui.modal import QuestionModal, send_ephemeral
from slack_feedback.ui.views import BaseView
from slack_feedback.widget.core import FeedbackWidget
from slack_feedback.widget.events import ClickDispatcher, ClickEvent, PrefixRoot
from slack_feedback.widget.payload import FeedbackForm
from slack_feedback.widget.render import ImageSectionKind, WidgetView
from slack_feedback.widget.state import Category, SubmissionPhase, WidgetState

from ._verifier import ChallengeVerifier

if TYPE_CHECKING:
    from collections.abc import Callable

    from discord.ext import commands

    from slack_feedback.config import Settings

    from ._delivery import AttachmentUploader, BackgroundTasks, WebhookSubmitter

CUSTOM_ID_PREFIX = "slack-feedback:"
TRIGGER_CUSTOM_ID = f"{CUSTOM_ID_PREFIX}trigger"

# Interaction tokens expire after 15 minutes; stop a little earlier
PANEL_TIMEOUT_SECONDS = 14 * 60


class FeedbackSession:
    """One user's widget together with the Discord message that displays it."""

    def __init__(  # noqa: PLR0913
        self,
        bot: commands.Bot,
        user_id: int,
        *,
        settings: Settings,
        submitter: WebhookSubmitter,
        uploader: AttachmentUploader | None,
        tasks: BackgroundTasks,
        on_release: Callable[[FeedbackSession], None] | None = None,
    ) -> None:
        self.bot = bot
        self.user_id = user_id
        self.settings = settings
        self.page_url = ""
        self.clicks = ClickDispatcher()
        self.verifier = ChallengeVerifier(bot)
        self.widget = FeedbackWidget(
            on_submit=submitter,
            verifier=self.verifier,
            click_source=self.clicks,
            root=PrefixRoot(CUSTOM_ID_PREFIX),
            on_image_upload=uploader,
            options=settings.widget_options(),
            timings=settings.timings(),
            location=lambda: self.page_url,
        )
        self.message: discord.InteractionMessage | None = None
        self.view: FeedbackPanelView | None = None
        self._tasks = tasks
        self._on_release = on_release
        self._refresh_pending = False
        self.log = logging.getLogger(__name__)

        self.widget.subscribe(self._on_change)
        self.widget.mount()

    @property
    def custom_id_prefix(self) -> str:
        return f"{CUSTOM_ID_PREFIX}{self.user_id}:"

    def render(self) -> tuple[discord.Embed, FeedbackPanelView | None]:
        view_model = self.widget.render()
        if view_model is None:
            return embeds.error_embed(description="Feedback is currently disabled."), None

        embed = embeds.panel_embed(view_model, self.widget.state, self.widget.options.content_styles)
        if not view_model.is_open:
            return embed, None
        return embed, FeedbackPanelView(self, view_model)

    async def show(self, interaction: discord.Interaction) -> None:
        """Send a fresh panel in response to ``interaction``."""
        embed, view = self.render()
        self._replace_view(view)
        await interaction.response.send_message(embed=embed, view=view or discord.utils.MISSING, ephemeral=True)
        self.message = await interaction.original_response()
        if view is not None:
            view.message = self.message

    def detach(self) -> None:
        """Stop editing the current panel message."""
        self.message = None
        self._replace_view(None)

    def dispatch_click(self, custom_id: str) -> None:
        self.clicks.dispatch(ClickEvent(target=custom_id))

    @property
    def releasable(self) -> bool:
        """Closed with nothing in flight, so dropping the session loses only the draft."""
        state = self.widget.state
        return not state.is_open and self.widget.phase is SubmissionPhase.IDLE and not state.uploading_image

    def close(self) -> None:
        self.widget.unmount()
        self._replace_view(None)
        self.message = None

    def release(self) -> None:
        """Close the session and tell the owner to forget it."""
        self.close()
        if self._on_release is not None:
            self._on_release(self)

    def _replace_view(self, view: FeedbackPanelView | None) -> None:
        if self.view is not None and self.view is not view:
            self.view.stop()
        self.view = view

    def _on_change(self, _state: WidgetState) -> None:
        if self.message is None:
            if self.releasable:
                self.release()
            return
        if self._refresh_pending:
            return
        self._refresh_pending = True
        self._tasks.spawn(self.refresh())

    async def refresh(self) -> None:
        """Redraw the panel message from the widget's current state."""
        # Let synchronous transitions settle so one edit covers them all
        await asyncio.sleep(0)
        self._refresh_pending = False
        message = self.message
        if message is None:
            return

        embed, view = self.render()
        self._replace_view(view)
        try:
            await message.edit(embed=embed, view=view)
        except discord.NotFound:
            self.message = None
        except discord.HTTPException as e:
            self.log.warning("Failed to refresh feedback panel for user %s: %s", self.user_id, e)
        else:
            if view is not None:
                view.message = message

        if self.releasable:
            self.release()


class FeedbackPanelView(BaseView):
    """Buttons projected from a ``WidgetView``; rebuilt after every transition."""

    def __init__(self, session: FeedbackSession, view_model: WidgetView) -> None:
        super().__init__(timeout=PANEL_TIMEOUT_SECONDS)
        self.session = session
        self.widget = session.widget
        self.view_model = view_model
        self._build()

    async def on_timeout(self) -> None:
        await super().on_timeout()
        if self.session.view is self:
            self.session.release()

    def _custom_id(self, name: str) -> str:
        return f"{self.session.custom_id_prefix}{name}"

    def _add_button(  # noqa: PLR0913
        self,
        name: str,
        label: str,
        callback: object,
        *,
        row: int,
        style: discord.ButtonStyle = discord.ButtonStyle.secondary,
        disabled: bool = False,
        emoji: str | None = None,
    ) -> ui.Button:
        button = ui.Button(
            label=label[:80],
            custom_id=self._custom_id(name),
            style=style,
            disabled=disabled,
            emoji=emoji,
            row=row,
        )
        button.callback = callback  # type: ignore[method-assign, assignment]
        self.add_item(button)
        return button

    def _build(self) -> None:
        for category, selected in self.view_model.categories:
            self._add_button(
                f"category:{category.value}",
                category.label,
                self._category_callback(category),
                row=0,
                style=discord.ButtonStyle.primary if selected else discord.ButtonStyle.secondary,
            )

        self._add_button("details", "Edit Details", self._open_details, row=1, emoji="📝")
        self._add_button(
            "verify",
            "Verified" if self.view_model.verified else "Verify",
            self._open_challenge,
            row=1,
            disabled=self.view_model.verified,
            emoji="🤖",
        )

        image = self.view_model.image
        if image is not None:
            if image.kind is ImageSectionKind.ATTACH:
                self._add_button("image:attach", image.label or "Attach Image", self._attach_image, row=1, emoji="📎")
            else:
                self._add_button(
                    "image:remove",
                    "Uploading..." if image.loading else "Remove Image",
                    self._remove_image,
                    row=1,
                    disabled=not image.removable,
                    style=discord.ButtonStyle.danger,
                )

        submit = self.view_model.submit
        if submit.error:
            submit_style = discord.ButtonStyle.danger
        elif submit.sent:
            submit_style = discord.ButtonStyle.success
        else:
            submit_style = discord.ButtonStyle.primary
        self._add_button("submit", submit.label, self._submit, row=2, style=submit_style, disabled=submit.disabled)
        self._add_button("close", "Close", self._close, row=2)

    # ========================================================================================
    # CALLBACKS
    # ========================================================================================

    def _category_callback(self, category: Category):  # noqa: ANN202
        async def callback(interaction: discord.Interaction) -> None:
            await interaction.response.defer()
            self.widget.select_category(category)

        return callback

    async def _open_details(self, interaction: discord.Interaction) -> None:
        state = self.widget.state
        modal = ModelModal(
            model_cls=FeedbackForm,
            callback=self._details_submitted,
            title="Your Feedback",
            initial_data={"name": state.name, "email": state.email, "message": state.message},
        )
        await interaction.response.send_modal(modal)

    async def _details_submitted(self, interaction: discord.Interaction, form: FeedbackForm) -> None:
        await interaction.response.defer()
        self.widget.update_fields(name=form.name, email=form.email, message=form.message)

    async def _open_challenge(self, interaction: discord.Interaction) -> None:
        verifier = self.session.verifier
        if self.widget.state.verified:
            await send_ephemeral(interaction, content="✅ You are already verified.")
            return
        if not verifier.rendered or verifier.challenge is None:
            await send_ephemeral(interaction, content="⏳ Verification is still loading, try again in a moment.")
            return

        modal = QuestionModal(
            self._challenge_answered,
            title="Verification",
            question=verifier.challenge.question,
            placeholder="Type the number",
        )
        await interaction.response.send_modal(modal)

    async def _challenge_answered(self, interaction: discord.Interaction, answer: str) -> None:
        if self.session.verifier.solve(answer):
            await interaction.response.defer()
            return
        await send_ephemeral(interaction, content="❌ That's not right. Press **Verify** to try a new question.")

    async def _attach_image(self, interaction: discord.Interaction) -> None:
        timeout = self.session.settings.image_wait_timeout_seconds
        await send_ephemeral(
            interaction,
            content=f"📎 Send the image as your next message in this channel within {int(timeout)} seconds.",
        )

        def check(message: discord.Message) -> bool:
            return (
                message.author.id == self.session.user_id
                and message.channel.id == interaction.channel_id
                and any(_is_image(attachment) for attachment in message.attachments)
            )

        try:
            message = await self.session.bot.wait_for("message", check=check, timeout=timeout)
        except TimeoutError:
            await interaction.followup.send("⌛ No image received.", ephemeral=True)
            return

        attachment = next(attachment for attachment in message.attachments if _is_image(attachment))
        self.widget.attach_image(attachment)

    async def _remove_image(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()
        self.widget.remove_image()

    async def _submit(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()
        # VerificationRequiredError / FormValidationError surface through on_error
        self.widget.submit()

    async def _close(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()
        self.widget.close()


def _is_image(attachment: discord.Attachment) -> bool:
    return bool(attachment.content_type and attachment.content_type.startswith("image/"))

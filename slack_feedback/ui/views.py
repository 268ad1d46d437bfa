import logging
from collections.abc import Awaitable, Callable
from typing import Any, cast

import discord
from discord import ui
from discord.utils import MISSING

from slack_feedback.errors import UserFriendlyError
from slack_feedback.ui.embeds import error_embed
from slack_feedback.ui.modal import send_ephemeral


class BaseView(ui.View):
    """A base view class that handles common lifecycle events like timeouts.

    This class automatically manages:
    1. Disabling items on timeout.
    2. Tracking the message associated with the view.
    3. Handling errors in item callbacks.
    """

    def __init__(self, *, timeout: float | None = 180) -> None:
        """Initialize the BaseView."""
        super().__init__(timeout=timeout)
        self.message: discord.InteractionMessage | None = None
        self.log = logging.getLogger(__name__)

    async def on_error(self, interaction: discord.Interaction, error: Exception, item: ui.Item) -> None:
        """Handle errors raised in view items."""
        if isinstance(error, UserFriendlyError):
            await send_ephemeral(interaction, embed=error_embed(description=error.user_message))
            return

        self.log.error("Error in view %s item %s: %s", self, item, error, exc_info=error)
        embed = error_embed(description="Something went wrong!\nThe error has been logged for the developers.")
        await send_ephemeral(interaction, embed=embed)

    async def on_timeout(self) -> None:
        """Disable all items and update the message on timeout."""
        self.log.info("View timed out: %s", self)
        self.disable_all_items()

        if self.message:
            try:
                await self.message.edit(view=self, content=f"{self.message.content or ''}\n\n**[Timed Out]**")
            except discord.NotFound:
                # Message might have been deleted
                pass
            except discord.HTTPException as e:
                self.log.warning("Failed to update message on timeout: %s", e)

    def disable_all_items(self) -> None:
        """Disable all interactive items in the view."""
        for item in self.children:
            if hasattr(item, "disabled"):
                cast("ui.Button | ui.Select", item).disabled = True

    async def reply(
        self,
        interaction: discord.Interaction,
        content: str | None = None,
        embed: discord.Embed = MISSING,
        ephemeral: bool = False,
    ) -> None:
        """Send a message with this view and automatically track the message."""
        await interaction.response.send_message(content=content, embed=embed, ephemeral=ephemeral, view=self)
        self.message = await interaction.original_response()


class TriggerView(BaseView):
    """Persistent view holding the single button that opens and closes the widget.

    The button keeps a fixed ``custom_id`` so the view can be re-registered
    with ``bot.add_view`` after a restart.
    """

    def __init__(
        self,
        callback: Callable[[discord.Interaction], Awaitable[Any]],
        *,
        custom_id: str,
        label: str,
        emoji: str | None = "📣",
        style: discord.ButtonStyle = discord.ButtonStyle.primary,
        style_overrides: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the TriggerView.

        Args:
            callback: Coroutine called with the interaction on every click.
            custom_id: Stable identifier of the trigger button.
            label: Text label for the button.
            emoji: Optional emoji for the button.
            style: Default Discord button style.
            style_overrides: Optional ``{"style": "success" | "danger" | ...}`` override.
        """
        super().__init__(timeout=None)
        self.callback = callback

        overrides = style_overrides or {}
        style_name = overrides.get("style")
        if isinstance(style_name, str) and hasattr(discord.ButtonStyle, style_name):
            style = getattr(discord.ButtonStyle, style_name)

        button = ui.Button(label=label, emoji=overrides.get("emoji", emoji), style=style, custom_id=custom_id)
        button.callback = self._button_callback  # type: ignore[method-assign]
        self.add_item(button)

    async def _button_callback(self, interaction: discord.Interaction) -> None:
        await self.callback(interaction)

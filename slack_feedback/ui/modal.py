import logging
from collections.abc import Awaitable, Callable

import discord
from discord import ui

from slack_feedback.errors import UserFriendlyError
from slack_feedback.ui.embeds import error_embed


async def send_ephemeral(interaction: discord.Interaction, **kwargs: object) -> None:
    """Reply ephemerally whether or not the interaction was already answered."""
    if interaction.response.is_done():
        await interaction.followup.send(ephemeral=True, **kwargs)  # type: ignore[arg-type]
    else:
        await interaction.response.send_message(ephemeral=True, **kwargs)  # type: ignore[arg-type]


class BaseModal(ui.Modal):
    """A base modal class that implements common functionality.

    Errors raised while handling a submission are reported to the user: a
    ``UserFriendlyError`` shows its own message, anything else is logged and
    answered with a generic one.
    """

    def __init__(self, *, title: str, timeout: float | None = None) -> None:
        """Initialize the BaseModal."""
        super().__init__(title=title, timeout=timeout)
        self.log = logging.getLogger(__name__)

    async def on_error(self, interaction: discord.Interaction, error: Exception) -> None:
        """Handle errors raised in ``on_submit``."""
        if isinstance(error, UserFriendlyError):
            await send_ephemeral(interaction, embed=error_embed(description=error.user_message))
            return

        self.log.error("Error in modal %s: %s", self.title, error, exc_info=error)
        embed = error_embed(description="Something went wrong!\nThe error has been logged for the developers.")
        await send_ephemeral(interaction, embed=embed)


class QuestionModal(BaseModal):
    """A one-question modal that delegates the answer to a callback.

    This is useful for decoupling the UI from the logic that checks the answer.
    """

    def __init__(
        self,
        callback: Callable[[discord.Interaction, str], Awaitable[None]],
        *,
        title: str,
        question: str,
        placeholder: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the QuestionModal.

        Args:
            callback: A coroutine function called with (interaction, answer) on submit.
            title: The title of the modal.
            question: Label of the single text input.
            placeholder: Optional placeholder text.
            timeout: The timeout in seconds.
        """
        super().__init__(title=title, timeout=timeout)
        self.submission_callback = callback
        self.answer: ui.TextInput = ui.TextInput(
            label=question[:45],
            placeholder=placeholder,
            required=True,
            max_length=100,
        )
        self.add_item(self.answer)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        """Delegate the answer to the callback."""
        await self.submission_callback(interaction, self.answer.value.strip())

"""Modals generated from pydantic models, used for the widget's contact fields."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import discord
from discord import ui
from pydantic import BaseModel, ValidationError
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

from slack_feedback.ui.modal import BaseModal, send_ephemeral
from slack_feedback.widget.payload import describe_validation_error

MAX_DISCORD_ROWS = 5
MAX_TEXT_INPUT_LEN = 4000
MAX_PLACEHOLDER_LEN = 100
MAX_LABEL_LEN = 45
PARAGRAPH_THRESHOLD = 200

FormCallback = Callable[[discord.Interaction, Any], Awaitable[Any]]


def _length_bounds(field_info: FieldInfo) -> tuple[int | None, int | None]:
    min_len = max_len = None
    for metadata in field_info.metadata:
        min_len = getattr(metadata, "min_length", min_len)
        max_len = getattr(metadata, "max_length", max_len)
    return min_len, max_len


def text_input_for(name: str, field_info: FieldInfo, value: object = None, *, row: int = 0) -> ui.TextInput:
    """Build the text input for one model field.

    ``value`` pre-fills the input; otherwise a scalar field default is used.
    Long fields (above ``PARAGRAPH_THRESHOLD`` characters) get a paragraph input.
    """
    if value is None and field_info.default not in (None, PydanticUndefined):
        value = field_info.default if isinstance(field_info.default, (str, int, float)) else None

    min_len, max_len = _length_bounds(field_info)
    label = field_info.title or name.replace("_", " ").title()
    placeholder = field_info.description or f"Enter {label}..."
    paragraph = max_len is not None and max_len > PARAGRAPH_THRESHOLD

    return ui.TextInput(
        label=label[:MAX_LABEL_LEN],
        placeholder=placeholder[:MAX_PLACEHOLDER_LEN],
        default=str(value) if value else None,
        required=field_info.is_required(),
        min_length=min_len,
        max_length=min(max_len, MAX_TEXT_INPUT_LEN) if max_len else MAX_TEXT_INPUT_LEN,
        style=discord.TextStyle.paragraph if paragraph else discord.TextStyle.short,
        row=min(row, MAX_DISCORD_ROWS - 1),
    )


class RetryView[T: BaseModel](ui.View):
    """Offers to reopen a modal whose input failed validation, keeping what was typed."""

    def __init__(
        self,
        model_cls: type[T],
        callback: FormCallback,
        title: str,
        values: dict[str, Any],
    ) -> None:
        """Initialize the RetryView."""
        super().__init__(timeout=300)
        self.model_cls = model_cls
        self.callback = callback
        self.title = title
        self.values = values

    @ui.button(label="Fix Errors", style=discord.ButtonStyle.red, emoji="🔧")
    async def retry(self, interaction: discord.Interaction, _button: ui.Button) -> None:
        """Reopen the modal pre-filled with the rejected values."""
        await interaction.response.send_modal(
            ModelModal(model_cls=self.model_cls, callback=self.callback, title=self.title, initial_data=self.values)
        )


class ModelModal[T: BaseModel](BaseModal):
    """A modal with one text input per field of a pydantic model.

    On submit the inputs are validated into ``model_cls``; ``callback`` only
    runs with a valid instance, otherwise the user is offered a ``RetryView``.
    """

    def __init__(
        self,
        model_cls: type[T],
        callback: FormCallback,
        title: str,
        initial_data: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the ModelModal.

        Args:
            model_cls: The pydantic model defining the form.
            callback: Coroutine called with the interaction and the validated model.
            title: The title of the modal.
            initial_data: Values to pre-fill, such as the widget's current fields.
            timeout: The timeout in seconds.
        """
        super().__init__(title=title, timeout=timeout)
        self.model_cls = model_cls
        self.callback = callback
        self.log = logging.getLogger(__name__)

        fields = model_cls.model_fields
        if len(fields) > MAX_DISCORD_ROWS:
            msg = f"Model '{model_cls.__name__}' has {len(fields)} fields, Discord modals hold at most 5"
            raise ValueError(msg)

        values = initial_data or {}
        self._inputs: dict[str, ui.TextInput] = {}
        for row, (name, field_info) in enumerate(fields.items()):
            self._inputs[name] = text_input_for(name, field_info, values.get(name), row=row)
            self.add_item(self._inputs[name])

    async def on_submit(self, interaction: discord.Interaction) -> None:
        """Validate the inputs, then run the callback or offer a retry."""
        values = {name: text_input.value for name, text_input in self._inputs.items()}

        try:
            instance = self.model_cls(**values)
        except ValidationError as e:
            self.log.debug("%s rejected for user %s", self.model_cls.__name__, interaction.user)
            view = RetryView(model_cls=self.model_cls, callback=self.callback, title=self.title, values=values)
            await send_ephemeral(
                interaction,
                content=f"❌ **Validation Failed**\n{describe_validation_error(e)}",
                view=view,
            )
            return

        await self.callback(interaction, instance)

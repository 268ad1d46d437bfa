from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from slack_feedback.ui.forms import ModelModal, RetryView
from slack_feedback.widget import FeedbackForm


def _interaction():
    interaction = MagicMock(spec=discord.Interaction)
    interaction.user = MagicMock()
    interaction.response = MagicMock()
    interaction.response.is_done.return_value = False
    interaction.response.send_message = AsyncMock()
    return interaction


@pytest.mark.asyncio
async def test_modal_has_one_input_per_field():
    modal = ModelModal(
        model_cls=FeedbackForm,
        callback=AsyncMock(),
        title="Your Feedback",
        initial_data={"name": "Alice", "email": "", "message": ""},
    )

    inputs = modal._inputs
    assert list(inputs) == ["name", "email", "message"]
    assert inputs["name"].default == "Alice"
    assert inputs["name"].required is False
    assert inputs["email"].required is True
    assert inputs["message"].style is discord.TextStyle.paragraph
    assert inputs["message"].max_length == 2000
    assert inputs["email"].placeholder == "Where can we reach you?"


@pytest.mark.asyncio
async def test_valid_submission_runs_callback():
    callback = AsyncMock()
    modal = ModelModal(model_cls=FeedbackForm, callback=callback, title="Your Feedback")
    modal._inputs = {
        "name": MagicMock(value="Alice"),
        "email": MagicMock(value="a@x.com"),
        "message": MagicMock(value="It crashes"),
    }
    interaction = _interaction()

    await modal.on_submit(interaction)

    form = callback.call_args.args[1]
    assert isinstance(form, FeedbackForm)
    assert (form.name, form.email, form.message) == ("Alice", "a@x.com", "It crashes")


@pytest.mark.asyncio
async def test_invalid_submission_offers_retry():
    callback = AsyncMock()
    modal = ModelModal(model_cls=FeedbackForm, callback=callback, title="Your Feedback")
    modal._inputs = {
        "name": MagicMock(value="Alice"),
        "email": MagicMock(value=""),
        "message": MagicMock(value="It crashes"),
    }
    interaction = _interaction()

    await modal.on_submit(interaction)

    callback.assert_not_awaited()
    kwargs = interaction.response.send_message.call_args.kwargs
    assert "**email**" in kwargs["content"]
    assert kwargs["ephemeral"] is True
    assert isinstance(kwargs["view"], RetryView)
    assert kwargs["view"].values["name"] == "Alice"

"""Feedback payload assembly."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slack_feedback.errors import FormValidationError
from slack_feedback.widget.state import Category, ImageRef

MESSAGE_TEMPLATE = "*Name*: {name}\n*Email*: {email}\n*Message*: {message}\n<{url}>"


class FeedbackForm(BaseModel):
    """Contact fields entered by the user."""

    name: str = Field(
        "",
        max_length=100,
        description="Your name (optional)",
    )

    email: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Where can we reach you?",
    )

    message: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Your Message...",
    )


class Attachment(BaseModel):
    """A single Slack message attachment."""

    model_config = ConfigDict(frozen=True)

    fallback: str
    author_name: str
    color: str
    title: str
    title_link: str
    text: str
    footer: str | None = None
    image_url: str | None = None


class FeedbackPayload(BaseModel):
    """Immutable message handed to the submission handler."""

    model_config = ConfigDict(frozen=True)

    channel: str
    username: str
    icon_emoji: str
    attachments: tuple[Attachment, ...]

    @property
    def attachment(self) -> Attachment:
        return self.attachments[0]

    def to_json(self) -> dict[str, Any]:
        """Serialize for the incoming webhook; unset optional keys are omitted."""
        return self.model_dump(mode="json", exclude_none=True)


def describe_validation_error(error: ValidationError) -> str:
    """One bullet per failing field, suitable for showing to the user."""
    lines = []
    for err in error.errors():
        loc = str(err["loc"][0]) if err["loc"] else "form"
        text = err["msg"].replace("Value error, ", "")
        lines.append(f"• **{loc}**: {text}")
    return "\n".join(lines)


def validate_form(name: str, email: str, message: str) -> FeedbackForm:
    """Validate contact fields, raising ``FormValidationError`` with a readable summary."""
    try:
        return FeedbackForm(name=name, email=email, message=message)
    except ValidationError as e:
        msg = "Feedback form failed validation"
        raise FormValidationError(msg, describe_validation_error(e)) from e


def compose_message(name: str, email: str, message: str, url: str) -> str:
    return MESSAGE_TEMPLATE.format(name=name, email=email, message=message, url=url)


def build_payload(  # noqa: PLR0913
    *,
    channel: str,
    username: str,
    icon_emoji: str,
    category: Category,
    form: FeedbackForm,
    page_url: str,
    image: ImageRef,
    footer: str | None = None,
) -> FeedbackPayload:
    """Assemble the payload for one submission.

    The ``image_url`` field is only present when the upload handler resolved a URL.
    """
    attachment: dict[str, Any] = {
        "fallback": f"Feedback ({category.value})",
        "author_name": username,
        "color": category.color,
        "title": category.value,
        "title_link": page_url,
        "text": compose_message(form.name, form.email, form.message, page_url),
        "footer": footer,
    }

    if image.resolved_url:
        attachment["image_url"] = image.resolved_url

    return FeedbackPayload(
        channel=channel,
        username=username,
        icon_emoji=icon_emoji,
        attachments=(Attachment(**attachment),),
    )

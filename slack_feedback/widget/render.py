"""Side-effect free projection of widget state into a view model."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from slack_feedback.widget.options import WidgetOptions
from slack_feedback.widget.state import Category, WidgetState

HEADER_TEXT = "Send Feedback to Slack"
SUBMIT_IDLE = "Send Feedback"
SUBMIT_SENDING = "Sending Feedback..."
SUBMIT_SENT = "Sent!"


class ImageSectionKind(enum.Enum):
    ATTACH = "attach"
    PREVIEW = "preview"


@dataclass(frozen=True, slots=True)
class ImageSection:
    kind: ImageSectionKind
    label: str | None = None
    preview_url: str | None = None
    loading: bool = False
    removable: bool = False


@dataclass(frozen=True, slots=True)
class SubmitButton:
    label: str
    sent: bool = False
    error: bool = False
    disabled: bool = False


@dataclass(frozen=True, slots=True)
class WidgetView:
    """Everything a renderer needs to draw the widget."""

    is_open: bool
    trigger_label: str
    header: str
    categories: tuple[tuple[Category, bool], ...]
    submit: SubmitButton
    image: ImageSection | None
    verified: bool


def submit_label(state: WidgetState) -> str:
    if state.error:
        return state.error
    if state.sent:
        return SUBMIT_SENT
    if state.sending:
        return SUBMIT_SENDING
    return SUBMIT_IDLE


def render_image_section(state: WidgetState, options: WidgetOptions) -> ImageSection:
    preview_url = state.attached_image.preview_url
    if preview_url:
        return ImageSection(
            kind=ImageSectionKind.PREVIEW,
            preview_url=preview_url,
            loading=state.uploading_image,
            removable=not state.uploading_image,
        )

    return ImageSection(kind=ImageSectionKind.ATTACH, label=options.image_upload_text)


def render_widget(state: WidgetState, options: WidgetOptions, *, image_upload: bool) -> WidgetView | None:
    """Project ``state`` into a ``WidgetView``.

    Returns ``None`` when the widget is disabled. The image section is omitted
    entirely when no upload handler is available.
    """
    if options.disabled:
        return None

    return WidgetView(
        is_open=state.is_open,
        trigger_label=options.button_text,
        header=HEADER_TEXT,
        categories=tuple((category, category is state.selected_category) for category in Category),
        submit=SubmitButton(
            label=submit_label(state),
            sent=state.sent,
            error=state.error is not None,
            disabled=state.sending,
        ),
        image=render_image_section(state, options) if image_upload else None,
        verified=state.verified,
    )

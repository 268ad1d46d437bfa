"""Static configuration handed to a widget instance."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_USER = "Unknown User"
DEFAULT_EMOJI = ":speaking_head_in_silhouette:"
DEFAULT_BUTTON_TEXT = "Slack Feedback"
DEFAULT_IMAGE_UPLOAD_TEXT = "Attach Image"
DEFAULT_FOOTER = "Slack Feedback"


@dataclass(frozen=True, slots=True)
class WidgetOptions:
    """Embedding options; every field except ``channel`` has a usable default."""

    channel: str = ""
    user: str = DEFAULT_USER
    emoji: str = DEFAULT_EMOJI
    disabled: bool = False
    button_text: str = DEFAULT_BUTTON_TEXT
    image_upload_text: str = DEFAULT_IMAGE_UPLOAD_TEXT
    trigger_styles: dict[str, Any] = field(default_factory=dict)
    content_styles: dict[str, Any] = field(default_factory=dict)
    site_key: str = ""
    footer: str | None = DEFAULT_FOOTER
    page_url: str = ""


@dataclass(frozen=True, slots=True)
class WidgetTimings:
    """Delays, in seconds, for the widget's timed transitions."""

    sent_reset: float = 5.0
    error_reset: float = 8.0
    upload_error_reset: float = 6.0
    verifier_poll_interval: float = 1.0
    verifier_max_attempts: int = 30

    def __post_init__(self) -> None:
        for name in ("sent_reset", "error_reset", "upload_error_reset", "verifier_poll_interval"):
            if getattr(self, name) < 0:
                msg = f"{name} must not be negative"
                raise ValueError(msg)
        if self.verifier_max_attempts < 1:
            msg = "verifier_max_attempts must be at least 1"
            raise ValueError(msg)

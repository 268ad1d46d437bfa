"""Widget state containers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class Category(enum.StrEnum):
    """Feedback category selectable in the widget."""

    BUG = "Bug"
    FEATURE = "Feature"
    IMPROVEMENT = "Improvement"

    @property
    def color(self) -> str:
        """Slack attachment colour: danger (red), good (green) or warning (orange)."""
        return _CATEGORY_COLORS[self]

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_COLORS = {
    Category.BUG: "danger",
    Category.FEATURE: "good",
    Category.IMPROVEMENT: "warning",
}

_CATEGORY_LABELS = {
    Category.BUG: "Bug",
    Category.FEATURE: "Feature Request",
    Category.IMPROVEMENT: "Improvement",
}


class SubmissionPhase(enum.Enum):
    """Derived submission phase of the widget."""

    IDLE = "idle"
    SENDING = "sending"
    SENT = "sent"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ImageRef:
    """Reference to the attached image.

    ``resolved_url`` is only set once the upload handler confirmed where the image lives.
    """

    file: Any = None
    preview_url: str | None = None
    resolved_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.preview_url is None and self.resolved_url is None and self.file is None


EMPTY_IMAGE = ImageRef()


@dataclass(slots=True)
class WidgetState:
    """Mutable state owned by a single feedback widget."""

    is_open: bool = False
    sending: bool = False
    sent: bool = False
    error: str | None = None
    uploading_image: bool = False
    selected_category: Category = Category.BUG
    attached_image: ImageRef = field(default=EMPTY_IMAGE)
    verified: bool = False
    name: str = ""
    email: str = ""
    message: str = ""

    @property
    def phase(self) -> SubmissionPhase:
        if self.sending:
            return SubmissionPhase.SENDING
        if self.sent:
            return SubmissionPhase.SENT
        if self.error is not None:
            return SubmissionPhase.ERROR
        return SubmissionPhase.IDLE

    def clear_phase(self) -> None:
        """Return the submission phase to idle."""
        self.sending = False
        self.sent = False
        self.error = None

    def clear_image(self) -> None:
        self.attached_image = EMPTY_IMAGE
        self.uploading_image = False

    def clear_fields(self) -> None:
        self.name = ""
        self.email = ""
        self.message = ""

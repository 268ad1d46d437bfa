from typing import Any


class FeedbackError(Exception):
    """Base exception class for all Slack Feedback errors."""

    pass


class UserFriendlyError(FeedbackError):
    """An exception that can be safely displayed to the user.

    Attributes:
        user_message (str): The message to display to the user.
    """

    def __init__(self, message: str, user_message: str) -> None:
        """Initialize the error.

        Args:
            message: Internal log message.
            user_message: User-facing message.
        """
        super().__init__(message)
        self.user_message = user_message


class VerificationRequiredError(UserFriendlyError):
    """Raised when feedback is submitted before the verification challenge is solved."""

    def __init__(self) -> None:
        """Initialize the error with the blocking alert text."""
        super().__init__(
            "Submission blocked: verification challenge has no response",
            "Oh no, you forgot to solve the CAPTCHA! Please try again.",
        )


class FormValidationError(UserFriendlyError):
    """Raised when the contact fields do not pass validation."""


class ImageUploadUnavailableError(FeedbackError):
    """Raised when an image is attached but no upload handler was supplied."""


class WebhookError(FeedbackError):
    """Raised when the incoming webhook rejects a payload.

    Attributes:
        status_code (int): HTTP status returned by the webhook, 0 for transport failures.
        payload (dict | None): Parsed error body, when the webhook returned JSON.
    """

    def __init__(self, message: str, *, status_code: int, payload: dict[str, Any] | None = None) -> None:
        """Initialize webhook error details."""
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    @property
    def status(self) -> int:
        """Alias read by the widget's error taxonomy."""
        return self.status_code


class ImageHostError(FeedbackError):
    """Raised when the image host fails to store an attachment."""

    def __init__(self, message: str, *, status_code: int = 0) -> None:
        """Initialize image host error details."""
        super().__init__(message)
        self.status_code = status_code

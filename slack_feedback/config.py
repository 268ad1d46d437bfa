import logging
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from slack_feedback.widget.options import (
    DEFAULT_BUTTON_TEXT,
    DEFAULT_EMOJI,
    DEFAULT_FOOTER,
    DEFAULT_IMAGE_UPLOAD_TEXT,
    DEFAULT_USER,
    WidgetOptions,
    WidgetTimings,
)


class EnvConfig(BaseSettings):
    """Environment configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


class Settings(EnvConfig):
    """Manages application settings using Pydantic."""

    log_level: int = logging.INFO
    prefix: str = "/"
    token: str = ""
    debug_guild_id: int | None = None

    # Incoming webhook
    webhook_url: str = ""
    webhook_timeout_seconds: float = Field(10.0, gt=0)
    webhook_max_connections: int = Field(10, ge=1)

    # Image hosting (uploads are disabled when no URL is configured)
    image_host_url: str = ""
    image_host_token: str = ""
    image_host_timeout_seconds: float = Field(30.0, gt=0)
    max_image_bytes: int = Field(8 * 1024 * 1024, ge=1)
    image_wait_timeout_seconds: float = Field(60.0, gt=0)

    # Widget options
    channel: str = ""
    user: str = DEFAULT_USER
    emoji: str = DEFAULT_EMOJI
    disabled: bool = False
    button_text: str = DEFAULT_BUTTON_TEXT
    image_upload_text: str = DEFAULT_IMAGE_UPLOAD_TEXT
    site_key: str = ""
    footer: str = DEFAULT_FOOTER
    # Style overrides, e.g. TRIGGER_STYLES='{"style": "success", "emoji": "💬"}'
    trigger_styles: dict[str, Any] = Field(default_factory=dict)
    content_styles: dict[str, Any] = Field(default_factory=dict)

    # Timed transitions
    sent_reset_seconds: float = Field(5.0, ge=0)
    error_reset_seconds: float = Field(8.0, ge=0)
    upload_error_reset_seconds: float = Field(6.0, ge=0)
    verifier_poll_interval_seconds: float = Field(1.0, gt=0)
    verifier_max_attempts: int = Field(30, ge=1)

    @property
    def image_upload_enabled(self) -> bool:
        return bool(self.image_host_url)

    def widget_options(self, *, page_url: str = "") -> WidgetOptions:
        """Build the options for one widget instance."""
        return WidgetOptions(
            channel=self.channel,
            user=self.user,
            emoji=self.emoji,
            disabled=self.disabled,
            button_text=self.button_text,
            image_upload_text=self.image_upload_text,
            site_key=self.site_key,
            footer=self.footer or None,
            trigger_styles=dict(self.trigger_styles),
            content_styles=dict(self.content_styles),
            page_url=page_url,
        )

    def timings(self) -> WidgetTimings:
        return WidgetTimings(
            sent_reset=self.sent_reset_seconds,
            error_reset=self.error_reset_seconds,
            upload_error_reset=self.upload_error_reset_seconds,
            verifier_poll_interval=self.verifier_poll_interval_seconds,
            verifier_max_attempts=self.verifier_max_attempts,
        )


settings = Settings()

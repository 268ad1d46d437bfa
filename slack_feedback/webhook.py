from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from slack_feedback.errors import WebhookError

if TYPE_CHECKING:
    from slack_feedback.widget.payload import FeedbackPayload

HTTP_STATUS_OK = 200
HTTP_STATUS_MULTIPLE_CHOICES = 300


class WebhookConfigurationError(RuntimeError):
    """Raised when webhook client settings are invalid."""


class WebhookClientNotInitializedError(RuntimeError):
    """Raised when the webhook client is accessed before initialization."""


@dataclass(slots=True)
class WebhookClientConfig:
    """Configures timeouts and pooling for webhook calls."""

    timeout_seconds: float = 10.0
    max_connections: int = 10
    max_keepalive_connections: int = 5


class WebhookClient:
    """HTTP client for a Slack-compatible incoming webhook."""

    def __init__(
        self,
        webhook_url: str,
        config: WebhookClientConfig | None = None,
    ) -> None:
        """Initialize an HTTP client configured for webhook delivery."""
        client_config = config or WebhookClientConfig()

        if not webhook_url or not webhook_url.strip():
            msg = "webhook_url must be set"
            raise WebhookConfigurationError(msg)
        if client_config.timeout_seconds <= 0:
            msg = "timeout_seconds must be greater than 0"
            raise ValueError(msg)
        if client_config.max_connections < 1:
            msg = "max_connections must be at least 1"
            raise ValueError(msg)
        if client_config.max_keepalive_connections < 0:
            msg = "max_keepalive_connections must be at least 0"
            raise ValueError(msg)

        self.webhook_url = webhook_url.strip()
        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(client_config.timeout_seconds),
            limits=httpx.Limits(
                max_connections=client_config.max_connections,
                max_keepalive_connections=client_config.max_keepalive_connections,
            ),
        )
        self._started = False

    async def start(self) -> None:
        """Mark the client as ready for request execution."""
        self._started = True

    async def close(self) -> None:
        """Close pooled HTTP connections."""
        if not self._started:
            return

        await self._client.aclose()
        self._started = False

    async def post_payload(self, payload: FeedbackPayload) -> None:
        """Deliver a feedback payload to the webhook."""
        await self.post_json(payload.to_json())

    async def post_json(self, body: dict[str, Any]) -> None:
        """POST ``body`` and raise ``WebhookError`` unless the webhook answers 2xx."""
        self._ensure_started()

        try:
            response = await self._client.request(method="POST", url=self.webhook_url, json=body)
        except httpx.HTTPError as exc:
            msg = "HTTP request to webhook failed"
            raise WebhookError(msg, status_code=0) from exc

        if not HTTP_STATUS_OK <= response.status_code < HTTP_STATUS_MULTIPLE_CHOICES:
            raise _to_webhook_error(response)

    def _ensure_started(self) -> None:
        if self._started:
            return

        msg = "Webhook client has not been initialized"
        raise WebhookClientNotInitializedError(msg)


class _ClientState:
    def __init__(self) -> None:
        self.client: WebhookClient | None = None


_client_state = _ClientState()
_client_lock = asyncio.Lock()


async def init_webhook_client(
    webhook_url: str,
    *,
    config: WebhookClientConfig | None = None,
) -> WebhookClient:
    """Initialize and return the global webhook client."""
    async with _client_lock:
        if _client_state.client is not None:
            return _client_state.client

        client = WebhookClient(webhook_url, config=config)
        await client.start()
        _client_state.client = client
        return client


def get_webhook_client() -> WebhookClient:
    """Return the global webhook client."""
    if _client_state.client is not None:
        return _client_state.client

    msg = "Webhook client has not been initialized"
    raise WebhookClientNotInitializedError(msg)


async def close_webhook_client() -> None:
    """Close and clear the global webhook client."""
    async with _client_lock:
        if _client_state.client is None:
            return

        await _client_state.client.close()
        _client_state.client = None


def _to_webhook_error(response: httpx.Response) -> WebhookError:
    payload: dict[str, Any] | None = None
    message = f"Webhook request failed with status {response.status_code}"

    if response.content:
        # Slack answers with plain-text error codes such as "channel_not_found"
        try:
            body = response.json()
        except ValueError:
            body = response.text

        if isinstance(body, dict):
            payload = body
            error_message = body.get("message") or body.get("error")
            if isinstance(error_message, str) and error_message:
                message = error_message
        elif isinstance(body, str) and body.strip():
            message = body.strip()

    return WebhookError(message, status_code=response.status_code, payload=payload)

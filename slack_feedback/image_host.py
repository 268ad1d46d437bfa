"""Client for the HTTP image host that stores attached screenshots."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from slack_feedback.errors import ImageHostError

HTTP_STATUS_OK = 200
HTTP_STATUS_MULTIPLE_CHOICES = 300


@dataclass(slots=True)
class ImageHostConfig:
    """Configures authentication and limits for image uploads."""

    token: str = ""
    timeout_seconds: float = 30.0
    max_bytes: int = 8 * 1024 * 1024


class ImageHostClient:
    """Uploads images as multipart form data and returns their public URL.

    The host is expected to answer with a JSON object carrying the URL under
    ``url`` (or ``data.url``, as image hosts commonly nest it).
    """

    def __init__(self, upload_url: str, config: ImageHostConfig | None = None) -> None:
        self.config = config or ImageHostConfig()

        if not upload_url or not upload_url.strip():
            msg = "upload_url must be set"
            raise ValueError(msg)
        if self.config.timeout_seconds <= 0:
            msg = "timeout_seconds must be greater than 0"
            raise ValueError(msg)

        self.upload_url = upload_url.strip()
        headers = {"Accept": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        self._client = httpx.AsyncClient(headers=headers, timeout=httpx.Timeout(self.config.timeout_seconds))

    async def close(self) -> None:
        await self._client.aclose()

    async def upload(self, filename: str, data: bytes, content_type: str | None = None) -> str:
        """Upload ``data`` and return the hosted URL."""
        if not content_type or not content_type.startswith("image/"):
            msg = f"Refusing to upload non-image content ({content_type or 'unknown type'})"
            raise ImageHostError(msg)
        if len(data) > self.config.max_bytes:
            msg = f"Image is {len(data)} bytes, the limit is {self.config.max_bytes}"
            raise ImageHostError(msg)

        try:
            response = await self._client.post(self.upload_url, files={"file": (filename, data, content_type)})
        except httpx.HTTPError as exc:
            msg = "HTTP request to image host failed"
            raise ImageHostError(msg) from exc

        if not HTTP_STATUS_OK <= response.status_code < HTTP_STATUS_MULTIPLE_CHOICES:
            msg = f"Image host rejected upload with status {response.status_code}"
            raise ImageHostError(msg, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            msg = "Image host returned a non-JSON response"
            raise ImageHostError(msg, status_code=response.status_code) from exc

        url = _extract_url(body)
        if url is None:
            msg = "Image host response did not contain a URL"
            raise ImageHostError(msg, status_code=response.status_code)
        return url


def _extract_url(body: object) -> str | None:
    if not isinstance(body, dict):
        return None

    url = body.get("url")
    if isinstance(url, str) and url:
        return url

    data = body.get("data")
    if isinstance(data, dict):
        nested = data.get("url")
        if isinstance(nested, str) and nested:
            return nested
    return None

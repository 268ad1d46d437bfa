"""Submit and image-upload handlers that bridge the widget to httpx clients."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

import discord

from slack_feedback.errors import ImageHostError, WebhookError
from slack_feedback.image_host import ImageHostClient
from slack_feedback.webhook import WebhookClient
from slack_feedback.widget.core import SubmissionHandle, UploadHandle
from slack_feedback.widget.payload import FeedbackPayload


class BackgroundTasks:
    """Keeps references to fire-and-forget tasks until they finish."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait(self) -> None:
        """Wait for every pending task to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)


class WebhookSubmitter:
    """Submit handler posting payloads to the incoming webhook.

    The widget stays in its sending state until the request finishes; the
    outcome is reported back through the ``SubmissionHandle``.
    """

    def __init__(self, client: Callable[[], WebhookClient], tasks: BackgroundTasks) -> None:
        self._client = client
        self._tasks = tasks
        self.log = logging.getLogger(__name__)

    def __call__(self, payload: FeedbackPayload, handle: SubmissionHandle) -> None:
        self._tasks.spawn(self.deliver(payload, handle))

    async def deliver(self, payload: FeedbackPayload, handle: SubmissionHandle) -> None:
        try:
            await self._client().post_payload(payload)
        except WebhookError as e:
            self.log.warning("Webhook rejected feedback (status %s): %s", e.status_code, e)
            handle.error(e)
            return
        except Exception as e:
            self.log.exception("Unexpected failure while delivering feedback")
            handle.error(e)
            return

        self.log.info("Delivered %s feedback to %s", payload.attachment.title, payload.channel or "default channel")
        handle.sent()


class AttachmentUploader:
    """Image upload handler that re-hosts Discord attachments on the image host."""

    def __init__(self, host: ImageHostClient, tasks: BackgroundTasks) -> None:
        self._host = host
        self._tasks = tasks
        self.log = logging.getLogger(__name__)

    def __call__(self, file: discord.Attachment, handle: UploadHandle) -> None:
        self._tasks.spawn(self.upload(file, handle))

    async def upload(self, file: discord.Attachment, handle: UploadHandle) -> None:
        try:
            data = await file.read()
            if not handle.is_current:
                self.log.debug("Attachment %s was removed before upload, skipping", file.filename)
                return
            url = await self._host.upload(file.filename, data, file.content_type)
        except (ImageHostError, discord.HTTPException) as e:
            self.log.warning("Failed to upload attachment %s: %s", file.filename, e)
            handle.fail(e)
            return

        handle.resolve(url)

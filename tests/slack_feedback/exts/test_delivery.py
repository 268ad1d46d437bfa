from unittest.mock import AsyncMock, MagicMock, PropertyMock

import discord
import pytest

from slack_feedback.errors import ImageHostError, WebhookError
from slack_feedback.exts.feedback._delivery import AttachmentUploader, BackgroundTasks, WebhookSubmitter


def _payload():
    payload = MagicMock()
    payload.channel = "#feedback"
    payload.attachment.title = "Bug"
    return payload


def _attachment():
    attachment = MagicMock(spec=discord.Attachment)
    attachment.filename = "shot.png"
    attachment.content_type = "image/png"
    attachment.read = AsyncMock(return_value=b"\x89PNG")
    return attachment


@pytest.mark.asyncio
async def test_background_tasks_tracks_until_done():
    tasks = BackgroundTasks()
    work = AsyncMock()

    tasks.spawn(work())
    assert len(tasks) == 1

    await tasks.wait()

    work.assert_awaited_once()
    assert len(tasks) == 0


@pytest.mark.asyncio
async def test_submitter_reports_sent():
    client = MagicMock()
    client.post_payload = AsyncMock()
    tasks = BackgroundTasks()
    submitter = WebhookSubmitter(lambda: client, tasks)
    handle = MagicMock()
    payload = _payload()

    submitter(payload, handle)
    await tasks.wait()

    client.post_payload.assert_awaited_once_with(payload)
    handle.sent.assert_called_once()
    handle.error.assert_not_called()


@pytest.mark.asyncio
async def test_submitter_reports_webhook_error():
    error = WebhookError("channel_not_found", status_code=404)
    client = MagicMock()
    client.post_payload = AsyncMock(side_effect=error)
    submitter = WebhookSubmitter(lambda: client, BackgroundTasks())
    handle = MagicMock()

    await submitter.deliver(_payload(), handle)

    handle.error.assert_called_once_with(error)
    handle.sent.assert_not_called()


@pytest.mark.asyncio
async def test_submitter_reports_missing_client():
    def missing_client():
        msg = "Webhook client has not been initialized"
        raise RuntimeError(msg)

    submitter = WebhookSubmitter(missing_client, BackgroundTasks())
    handle = MagicMock()

    await submitter.deliver(_payload(), handle)

    handle.error.assert_called_once()
    assert isinstance(handle.error.call_args.args[0], RuntimeError)


@pytest.mark.asyncio
async def test_uploader_resolves_hosted_url():
    host = MagicMock()
    host.upload = AsyncMock(return_value="https://img.example.com/shot.png")
    tasks = BackgroundTasks()
    uploader = AttachmentUploader(host, tasks)
    handle = MagicMock()
    handle.is_current = True

    uploader(_attachment(), handle)
    await tasks.wait()

    host.upload.assert_awaited_once_with("shot.png", b"\x89PNG", "image/png")
    handle.resolve.assert_called_once_with("https://img.example.com/shot.png")


@pytest.mark.asyncio
async def test_uploader_skips_removed_image():
    host = MagicMock()
    host.upload = AsyncMock()
    uploader = AttachmentUploader(host, BackgroundTasks())
    handle = MagicMock()
    type(handle).is_current = PropertyMock(return_value=False)

    await uploader.upload(_attachment(), handle)

    host.upload.assert_not_awaited()
    handle.resolve.assert_not_called()
    handle.fail.assert_not_called()


@pytest.mark.asyncio
async def test_uploader_reports_host_failure():
    error = ImageHostError("Image host rejected upload with status 500", status_code=500)
    host = MagicMock()
    host.upload = AsyncMock(side_effect=error)
    uploader = AttachmentUploader(host, BackgroundTasks())
    handle = MagicMock()
    handle.is_current = True

    await uploader.upload(_attachment(), handle)

    handle.fail.assert_called_once_with(error)
    handle.resolve.assert_not_called()

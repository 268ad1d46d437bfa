"""The feedback widget state machine.

The widget owns a ``WidgetState`` and exposes the operations an embedding
environment calls in response to user input (``toggle``, ``select_category``,
``attach_image``, ``submit`` ...) together with the reentry points its
collaborators call when asynchronous work finishes (``sent``, ``error``,
``image_uploaded``, ``upload_error``, ``on_verified``).

Every asynchronous reentry point is guarded:

- after ``unmount`` nothing mutates state any more;
- completions are matched against a generation token, so a callback for an
  image that was removed or a submission that already finished is ignored.
"""

from __future__ import annotations

import base64
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from slack_feedback.errors import FeedbackError, ImageUploadUnavailableError, VerificationRequiredError
from slack_feedback.widget.error_types import IMAGE_UPLOAD_ERROR, determine_error_type
from slack_feedback.widget.events import ClickEvent, ClickSource, RootNode
from slack_feedback.widget.options import WidgetOptions, WidgetTimings
from slack_feedback.widget.payload import FeedbackPayload, build_payload, validate_form
from slack_feedback.widget.render import WidgetView, render_widget
from slack_feedback.widget.state import Category, ImageRef, SubmissionPhase, WidgetState
from slack_feedback.widget.timers import LoopScheduler, Scheduler, TimerSet
from slack_feedback.widget.verification import Verifier, VerifierMount

SubmitHandler = Callable[[FeedbackPayload, "SubmissionHandle"], None]
ImageUploadHandler = Callable[[Any, "UploadHandle"], None]
ChangeListener = Callable[[WidgetState], None]

_PHASE_TIMER = "phase-reset"


def default_preview_url(file: Any) -> str:  # noqa: ANN401
    """Build a local preview URL for a selected file.

    Paths become ``file://`` URIs, raw bytes become a data URL and objects that
    already carry a ``url`` (such as chat attachments) reuse it.
    """
    if isinstance(file, (str, os.PathLike)):
        return Path(file).resolve().as_uri()
    if isinstance(file, (bytes, bytearray)):
        encoded = base64.b64encode(bytes(file)).decode("ascii")
        return f"data:application/octet-stream;base64,{encoded}"

    url = getattr(file, "url", None)
    if isinstance(url, str) and url:
        return url

    msg = f"Cannot build a preview URL for {type(file).__name__!r}"
    raise TypeError(msg)


class UploadHandle:
    """Completion handle passed to the image upload handler."""

    def __init__(self, widget: FeedbackWidget, generation: int, file: Any) -> None:  # noqa: ANN401
        self._widget = widget
        self.generation = generation
        self.file = file

    def resolve(self, url: object) -> None:
        self._widget.image_uploaded(url, generation=self.generation)

    def fail(self, err: object = None) -> None:
        self._widget.upload_error(err, generation=self.generation)

    @property
    def is_current(self) -> bool:
        return self._widget.image_generation == self.generation and not self._widget.state.attached_image.is_empty


class SubmissionHandle:
    """Completion handle passed to the submit handler."""

    def __init__(self, widget: FeedbackWidget, generation: int) -> None:
        self._widget = widget
        self.generation = generation

    def sent(self) -> None:
        self._widget.sent(generation=self.generation)

    def error(self, err: object = None) -> None:
        self._widget.error(err, generation=self.generation)


class FeedbackWidget:
    """Headless feedback widget.

    Args:
        on_submit: Called with the payload and a ``SubmissionHandle`` on every accepted submit.
        verifier: The human-verification collaborator.
        click_source: Document-like source of click events, used for outside-click dismissal.
        root: The node that counts as "inside" the widget.
        on_image_upload: Optional upload handler; when missing, images cannot be attached.
        options: Embedding options.
        timings: Delays for timed transitions.
        scheduler: Timer backend, defaults to the running asyncio loop.
        location: Returns the current page address; defaults to ``options.page_url``.
        preview_factory: Builds a local preview URL from a selected file.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        on_submit: SubmitHandler,
        verifier: Verifier,
        click_source: ClickSource,
        root: RootNode,
        on_image_upload: ImageUploadHandler | None = None,
        options: WidgetOptions | None = None,
        timings: WidgetTimings | None = None,
        scheduler: Scheduler | None = None,
        location: Callable[[], str] | None = None,
        preview_factory: Callable[[Any], str] = default_preview_url,
    ) -> None:
        self.options = options or WidgetOptions()
        self.timings = timings or WidgetTimings()
        self.state = WidgetState()
        self.on_submit = on_submit
        self.on_image_upload = on_image_upload
        self.verifier = verifier
        self.click_source = click_source
        self.root = root
        self.location = location or (lambda: self.options.page_url)
        self.preview_factory = preview_factory
        self.log = logging.getLogger(__name__)

        # One stable reference, registered and unregistered as-is
        self._click_handler = self.handle_click_outside
        self._timers = TimerSet(scheduler or LoopScheduler())
        self._verifier_mount = VerifierMount(
            verifier,
            self._timers,
            site_key=self.options.site_key,
            callback=self.on_verified,
            interval=self.timings.verifier_poll_interval,
            max_attempts=self.timings.verifier_max_attempts,
        )
        self._listeners: list[ChangeListener] = []
        self._image_generation = 0
        self._submission_generation = 0
        self.mounted = False
        self.destroyed = False

    # ========================================================================================
    # LIFECYCLE
    # ========================================================================================

    def mount(self) -> None:
        """Start the widget; the verifier is rendered once it reports ready."""
        if self.destroyed:
            msg = "Cannot mount a widget that has been unmounted"
            raise FeedbackError(msg)
        if self.mounted:
            return

        self.mounted = True
        self._verifier_mount.start()

    def unmount(self) -> None:
        """Release the click listener and cancel every pending timer."""
        if self.destroyed:
            return

        self.click_source.remove_listener(self._click_handler, capture=True)
        self._timers.cancel_all()
        self._listeners.clear()
        self.state.is_open = False
        self.mounted = False
        self.destroyed = True
        self.log.debug("Widget unmounted")

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener`` after every state transition; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                self.log.exception("Widget change listener %r failed", listener)

    @property
    def disabled(self) -> bool:
        return self.options.disabled

    @property
    def interactive(self) -> bool:
        return not self.disabled and not self.destroyed

    @property
    def supports_image_upload(self) -> bool:
        return self.on_image_upload is not None

    @property
    def phase(self) -> SubmissionPhase:
        return self.state.phase

    @property
    def image_generation(self) -> int:
        return self._image_generation

    @property
    def submission_generation(self) -> int:
        return self._submission_generation

    def render(self) -> WidgetView | None:
        return render_widget(self.state, self.options, image_upload=self.supports_image_upload)

    # ========================================================================================
    # VISIBILITY
    # ========================================================================================

    def toggle(self) -> None:
        if self.state.is_open:
            self.close()
        else:
            self.activate()

    def activate(self) -> None:
        if not self.interactive or self.state.is_open:
            return

        self.state.is_open = True
        self.click_source.add_listener(self._click_handler, capture=True)
        self._notify()

    def close(self) -> None:
        self.click_source.remove_listener(self._click_handler, capture=True)
        if not self.state.is_open:
            return

        self.state.is_open = False
        self._notify()

    def handle_click_outside(self, event: ClickEvent) -> None:
        if event.default_prevented:
            return

        if not self.root.contains(event.target):
            self.close()

    # ========================================================================================
    # VERIFICATION
    # ========================================================================================

    def on_verified(self) -> None:
        if self.destroyed:
            return

        self.state.verified = True
        self._notify()

    # ========================================================================================
    # FORM FIELDS
    # ========================================================================================

    def select_category(self, category: Category | str) -> None:
        if not self.interactive:
            return

        self.state.selected_category = Category(category)
        self._notify()

    def update_fields(
        self,
        *,
        name: str | None = None,
        email: str | None = None,
        message: str | None = None,
    ) -> None:
        """Record contact input; fields left as ``None`` keep their value."""
        if not self.interactive:
            return

        if name is not None:
            self.state.name = name
        if email is not None:
            self.state.email = email
        if message is not None:
            self.state.message = message
        self._notify()

    def set_name(self, name: str) -> None:
        self.update_fields(name=name)

    def set_email(self, email: str) -> None:
        self.update_fields(email=email)

    def set_message(self, message: str) -> None:
        self.update_fields(message=message)

    # ========================================================================================
    # IMAGE ATTACHMENT
    # ========================================================================================

    def attach_image(self, file: Any) -> UploadHandle | None:  # noqa: ANN401
        """Attach ``file`` locally and hand it to the upload handler."""
        if not self.interactive:
            return None
        if self.on_image_upload is None:
            msg = "Image upload is not enabled for this widget"
            raise ImageUploadUnavailableError(msg)

        preview_url = self.preview_factory(file)
        self._image_generation += 1
        self.state.attached_image = ImageRef(file=file, preview_url=preview_url)
        self.state.uploading_image = True
        self._notify()

        handle = UploadHandle(self, self._image_generation, file)
        try:
            self.on_image_upload(file, handle)
        except Exception as e:
            self.log.exception("Image upload handler raised")
            handle.fail(e)
        return handle

    def _image_is_stale(self, generation: int | None) -> bool:
        if self.state.attached_image.is_empty:
            return True
        return generation is not None and generation != self._image_generation

    def image_uploaded(self, url: object, *, generation: int | None = None) -> None:
        """Record the hosted URL of the attached image."""
        if self.destroyed or self._image_is_stale(generation):
            self.log.debug("Ignoring stale image upload completion (generation %s)", generation)
            return

        if not isinstance(url, str):
            self.log.error("`url` argument in `image_uploaded` must be a string, got %s", type(url).__name__)
            self._detach_image()
            self._notify()
            return

        # Only the preview and the hosted URL survive; the file handle is dropped
        self.state.attached_image = ImageRef(preview_url=self.state.attached_image.preview_url, resolved_url=url)
        self.state.uploading_image = False
        self._notify()

    def upload_error(self, err: object = None, *, generation: int | None = None) -> None:
        if self.destroyed or self._image_is_stale(generation):
            self.log.debug("Ignoring stale image upload failure (generation %s)", generation)
            return

        self.log.warning("Image upload failed: %s", err)
        self._detach_image()

        if self.state.sending:
            self.log.warning("Not displaying upload failure while a submission is in flight")
        else:
            self._enter_error(IMAGE_UPLOAD_ERROR, self.timings.upload_error_reset)
        self._notify()

    def remove_image(self) -> None:
        """Detach the image; an upload still in flight is not cancelled."""
        if not self.interactive:
            return

        self._detach_image()
        self._notify()

    def _detach_image(self) -> None:
        # Invalidates every outstanding UploadHandle
        self._image_generation += 1
        self.state.clear_image()

    # ========================================================================================
    # SUBMISSION
    # ========================================================================================

    def submit(self) -> FeedbackPayload | None:
        """Validate, build the payload and hand it to the submit handler.

        Raises:
            VerificationRequiredError: The verification challenge has no response.
            FormValidationError: The contact fields are invalid.
        """
        if not self.interactive:
            return None
        if self.state.sending:
            self.log.warning("Submit ignored: a submission is already in flight")
            return None

        if not self.verifier.get_response():
            raise VerificationRequiredError

        form = validate_form(self.state.name, self.state.email, self.state.message)

        self._timers.cancel(_PHASE_TIMER)
        self.state.clear_phase()
        self.state.sending = True
        self._submission_generation += 1

        payload = build_payload(
            channel=self.options.channel,
            username=self.options.user,
            icon_emoji=self.options.emoji,
            category=self.state.selected_category,
            form=form,
            page_url=self.location(),
            image=self.state.attached_image,
            footer=self.options.footer,
        )
        self._notify()

        handle = SubmissionHandle(self, self._submission_generation)
        try:
            self.on_submit(payload, handle)
        except Exception as e:
            self.log.exception("Submit handler raised")
            handle.error(e)
        return payload

    def _submission_is_stale(self, generation: int | None) -> bool:
        if self.destroyed or not self.state.sending:
            return True
        return generation is not None and generation != self._submission_generation

    def sent(self, *, generation: int | None = None) -> None:
        """Mark the in-flight submission as delivered and reset the form."""
        if self._submission_is_stale(generation):
            self.log.debug("Ignoring stale sent() completion (generation %s)", generation)
            return

        self.state.sending = False
        self.state.sent = True
        self.state.error = None
        self.state.verified = False
        self.state.clear_fields()
        self._detach_image()
        self.verifier.reset()

        self._timers.schedule(_PHASE_TIMER, self.timings.sent_reset, self._return_to_idle)
        self.log.info("Feedback sent (%s)", self.state.selected_category.value)
        self._notify()

    def error(self, err: object = None, *, generation: int | None = None) -> None:
        """Mark the in-flight submission as failed."""
        if self._submission_is_stale(generation):
            self.log.debug("Ignoring stale error() completion (generation %s)", generation)
            return

        message = determine_error_type(err)
        self.log.warning("Feedback submission failed: %s (%r)", message, err)
        self._enter_error(message, self.timings.error_reset)
        self._notify()

    def _enter_error(self, message: str, delay: float) -> None:
        self.state.clear_phase()
        self.state.error = message
        self._timers.schedule(_PHASE_TIMER, delay, self._return_to_idle)

    def _return_to_idle(self) -> None:
        if self.destroyed:
            return

        self.state.sent = False
        self.state.error = None
        self._notify()

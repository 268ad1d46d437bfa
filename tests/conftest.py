from unittest.mock import MagicMock

import pytest

from slack_feedback.widget import ClickDispatcher, FeedbackWidget, PrefixRoot, WidgetOptions

PAGE_URL = "https://example.com/app/settings"


class ManualHandle:
    def __init__(self, scheduler, when, callback):
        self.scheduler = scheduler
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls ``advance``."""

    def __init__(self):
        self.now = 0.0
        self.handles: list[ManualHandle] = []

    def call_later(self, delay, callback):
        handle = ManualHandle(self, self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = sorted((h for h in self.pending() if h.when <= target), key=lambda h: h.when)
            if not due:
                break
            handle = due[0]
            self.handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target


class FakeVerifier:
    def __init__(self, *, ready=True, response=""):
        self.ready = ready
        self.response = response
        self.render_calls = []
        self.reset_calls = 0

    def is_ready(self):
        return self.ready

    def render(self, site_key, callback):
        self.render_calls.append((site_key, callback))

    def get_response(self):
        return self.response

    def reset(self):
        self.reset_calls += 1
        self.response = ""

    def complete(self):
        self.response = "token"
        _, callback = self.render_calls[-1]
        callback()


@pytest.fixture
def page_url():
    return PAGE_URL


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def clicks():
    return ClickDispatcher()


@pytest.fixture
def on_submit():
    return MagicMock(name="on_submit")


@pytest.fixture
def on_image_upload():
    return MagicMock(name="on_image_upload")


@pytest.fixture
def make_widget(scheduler, verifier, clicks, on_submit, on_image_upload):
    def factory(*, with_upload=True, **option_overrides):
        options = WidgetOptions(channel="#feedback", user="Widget Bot", site_key="site-key", **option_overrides)
        widget = FeedbackWidget(
            on_submit=on_submit,
            verifier=verifier,
            click_source=clicks,
            root=PrefixRoot("widget:"),
            on_image_upload=on_image_upload if with_upload else None,
            options=options,
            scheduler=scheduler,
            location=lambda: PAGE_URL,
            preview_factory=lambda file: f"blob:{file}",
        )
        widget.mount()
        return widget

    return factory


@pytest.fixture
def widget(make_widget):
    return make_widget()


@pytest.fixture
def verified_widget(widget, verifier, scheduler):
    scheduler.advance(1)
    verifier.complete()
    widget.update_fields(name="Alice", email="a@x.com", message="It crashes")
    return widget

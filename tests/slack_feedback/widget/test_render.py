import pytest

from slack_feedback.widget import Category, WidgetOptions, WidgetState, WidgetTimings, render_widget
from slack_feedback.widget.render import HEADER_TEXT, ImageSectionKind, submit_label


def test_disabled_widget_renders_nothing():
    assert render_widget(WidgetState(), WidgetOptions(disabled=True), image_upload=True) is None


def test_closed_widget_still_renders_trigger():
    view = render_widget(WidgetState(), WidgetOptions(button_text="Tell us"), image_upload=False)

    assert view.is_open is False
    assert view.trigger_label == "Tell us"
    assert view.header == HEADER_TEXT
    assert view.image is None


def test_categories_mark_selected_one():
    state = WidgetState(selected_category=Category.IMPROVEMENT)

    view = render_widget(state, WidgetOptions(), image_upload=True)

    assert view.categories == (
        (Category.BUG, False),
        (Category.FEATURE, False),
        (Category.IMPROVEMENT, True),
    )


@pytest.mark.parametrize(
    ("flags", "label"),
    [
        ({}, "Send Feedback"),
        ({"sending": True}, "Sending Feedback..."),
        ({"sent": True}, "Sent!"),
        ({"error": "Forbidden!"}, "Forbidden!"),
    ],
)
def test_submit_label(flags, label):
    assert submit_label(WidgetState(**flags)) == label


def test_submit_disabled_only_while_sending():
    options = WidgetOptions()

    assert render_widget(WidgetState(sending=True), options, image_upload=True).submit.disabled is True
    assert render_widget(WidgetState(uploading_image=True), options, image_upload=True).submit.disabled is False
    assert render_widget(WidgetState(), options, image_upload=True).submit.disabled is False


def test_attach_label_uses_options():
    view = render_widget(WidgetState(), WidgetOptions(image_upload_text="Add screenshot"), image_upload=True)

    assert view.image.kind is ImageSectionKind.ATTACH
    assert view.image.label == "Add screenshot"


def test_widget_options_defaults():
    options = WidgetOptions(channel="#general")

    assert options.user == "Unknown User"
    assert options.emoji == ":speaking_head_in_silhouette:"
    assert options.button_text == "Slack Feedback"
    assert options.disabled is False


@pytest.mark.parametrize(
    "overrides",
    [{"sent_reset": -1}, {"error_reset": -0.5}, {"verifier_poll_interval": -1}, {"verifier_max_attempts": 0}],
)
def test_widget_timings_rejects_invalid_values(overrides):
    with pytest.raises(ValueError):
        WidgetTimings(**overrides)

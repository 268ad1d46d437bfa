from unittest.mock import MagicMock

import pytest

from slack_feedback.errors import FormValidationError
from slack_feedback.widget import Category, SubmissionPhase


def test_submit_builds_payload_for_bug_report(verified_widget, on_submit, page_url):
    verified_widget.select_category("Bug")

    payload = verified_widget.submit()

    on_submit.assert_called_once()
    sent_payload, handle = on_submit.call_args.args
    assert sent_payload is payload
    assert handle.generation == verified_widget.submission_generation

    attachment = payload.attachment
    assert payload.channel == "#feedback"
    assert payload.username == "Widget Bot"
    assert payload.icon_emoji == ":speaking_head_in_silhouette:"
    assert attachment.color == "danger"
    assert attachment.title == "Bug"
    assert attachment.fallback == "Feedback (Bug)"
    assert attachment.author_name == "Widget Bot"
    assert attachment.title_link == page_url
    for fragment in ("Alice", "a@x.com", "It crashes", page_url):
        assert fragment in attachment.text
    assert "image_url" not in payload.to_json()["attachments"][0]


@pytest.mark.parametrize(
    ("category", "color"),
    [(Category.BUG, "danger"), (Category.FEATURE, "good"), (Category.IMPROVEMENT, "warning")],
)
def test_category_color_tag(verified_widget, category, color):
    verified_widget.select_category(category)

    payload = verified_widget.submit()

    assert payload.attachment.color == color
    assert payload.attachment.title == category.value


def test_submit_enters_sending(verified_widget):
    verified_widget.submit()

    assert verified_widget.phase is SubmissionPhase.SENDING
    assert verified_widget.render().submit.label == "Sending Feedback..."


def test_sending_is_left_only_by_collaborator(verified_widget, scheduler):
    verified_widget.submit()

    scheduler.advance(60)

    assert verified_widget.phase is SubmissionPhase.SENDING


def test_sent_clears_form_and_returns_to_idle_after_delay(verified_widget, scheduler):
    verified_widget.attach_image("shot.png")
    verified_widget.submit()

    verified_widget.sent()

    state = verified_widget.state
    assert verified_widget.phase is SubmissionPhase.SENT
    assert (state.name, state.email, state.message) == ("", "", "")
    assert state.attached_image.is_empty
    assert state.verified is False
    assert verified_widget.render().submit.label == "Sent!"

    scheduler.advance(4.5)
    assert verified_widget.phase is SubmissionPhase.SENT

    scheduler.advance(0.5)
    assert verified_widget.phase is SubmissionPhase.IDLE
    assert verified_widget.render().submit.label == "Send Feedback"


def test_error_shows_mapped_message_then_resets(verified_widget, scheduler):
    verified_widget.submit()

    verified_widget.error({"status": 404})

    assert verified_widget.phase is SubmissionPhase.ERROR
    assert verified_widget.state.error == "Channel Not Found!"
    assert verified_widget.render().submit.label == "Channel Not Found!"
    # Fields are kept so the user can retry
    assert verified_widget.state.message == "It crashes"

    scheduler.advance(7.5)
    assert verified_widget.state.error == "Channel Not Found!"

    scheduler.advance(0.5)
    assert verified_widget.phase is SubmissionPhase.IDLE
    assert verified_widget.render().submit.label == "Send Feedback"


def test_only_one_phase_flag_at_a_time(verified_widget, verifier):
    def flags():
        state = verified_widget.state
        return [state.sending, state.sent, state.error is not None]

    verified_widget.submit()
    assert flags() == [True, False, False]

    verified_widget.error({"status": 500})
    assert flags() == [False, False, True]

    verifier.response = "token"
    verified_widget.submit()
    assert flags() == [True, False, False]

    verified_widget.sent()
    assert flags() == [False, True, False]


def test_submit_during_error_cancels_reset_timer(verified_widget, verifier, scheduler):
    verified_widget.submit()
    verified_widget.error({"status": 500})

    verified_widget.submit()
    scheduler.advance(8)

    assert verified_widget.phase is SubmissionPhase.SENDING


def test_completion_handles_ignore_stale_generations(verified_widget, on_submit, verifier):
    verified_widget.submit()
    first_handle = on_submit.call_args.args[1]
    first_handle.error({"status": 500})

    verifier.response = "token"
    verified_widget.submit()
    first_handle.sent()

    assert verified_widget.phase is SubmissionPhase.SENDING


def test_sent_without_pending_submission_is_ignored(verified_widget):
    verified_widget.sent()
    verified_widget.error({"status": 400})

    assert verified_widget.phase is SubmissionPhase.IDLE
    assert verified_widget.state.message == "It crashes"


def test_second_submit_while_sending_is_ignored(verified_widget, on_submit):
    verified_widget.submit()

    assert verified_widget.submit() is None
    on_submit.assert_called_once()


def test_submit_validates_contact_fields(widget, verifier, scheduler, on_submit):
    scheduler.advance(1)
    verifier.complete()
    widget.update_fields(name="Alice", email="", message="")

    with pytest.raises(FormValidationError) as exc_info:
        widget.submit()

    assert "email" in exc_info.value.user_message
    assert "message" in exc_info.value.user_message
    on_submit.assert_not_called()
    assert widget.phase is SubmissionPhase.IDLE


def test_submit_handler_exception_becomes_error(verified_widget, on_submit):
    on_submit.side_effect = RuntimeError("transport exploded")

    verified_widget.submit()

    assert verified_widget.state.error == "Unexpected Error!"


def test_timers_cancelled_on_unmount(verified_widget, scheduler):
    verified_widget.submit()
    verified_widget.sent()
    listener = MagicMock()
    verified_widget.subscribe(listener)

    verified_widget.unmount()
    scheduler.advance(10)

    assert scheduler.pending() == []
    listener.assert_not_called()


def test_completion_after_unmount_is_ignored(verified_widget, on_submit):
    verified_widget.submit()
    handle = on_submit.call_args.args[1]

    verified_widget.unmount()
    handle.sent()

    assert verified_widget.state.message == "It crashes"


def test_category_selection_always_permitted(verified_widget):
    verified_widget.submit()

    verified_widget.select_category(Category.FEATURE)

    assert verified_widget.state.selected_category is Category.FEATURE


def test_category_selection_blocked_when_disabled(make_widget):
    widget = make_widget(disabled=True)

    widget.select_category(Category.IMPROVEMENT)

    assert widget.state.selected_category is Category.BUG

import pytest

from slack_feedback.errors import UserFriendlyError, VerificationRequiredError
from slack_feedback.widget import SubmissionPhase, TimerSet, VerifierMount


def test_verifier_rendered_once_after_ready(widget, verifier, scheduler):
    verifier.ready = False
    assert verifier.render_calls == []

    scheduler.advance(3)
    assert verifier.render_calls == []

    verifier.ready = True
    scheduler.advance(1)
    scheduler.advance(10)

    assert len(verifier.render_calls) == 1
    site_key, callback = verifier.render_calls[0]
    assert site_key == "site-key"
    assert callback == widget.on_verified


def test_verifier_polling_gives_up(scheduler, verifier):
    verifier.ready = False
    mount = VerifierMount(
        verifier,
        TimerSet(scheduler),
        site_key="key",
        callback=lambda: None,
        interval=1.0,
        max_attempts=3,
    )

    mount.start()
    scheduler.advance(10)

    assert mount.attempts == 3
    assert mount.gave_up is True
    assert scheduler.pending() == []
    assert verifier.render_calls == []


def test_verifier_polling_cancelled_on_unmount(widget, verifier, scheduler):
    verifier.ready = False

    widget.unmount()
    verifier.ready = True
    scheduler.advance(5)

    assert verifier.render_calls == []


def test_verifier_mount_rejects_zero_attempts(scheduler, verifier):
    with pytest.raises(ValueError, match="max_attempts"):
        VerifierMount(verifier, TimerSet(scheduler), site_key="", callback=lambda: None, max_attempts=0)


def test_on_verified_sets_flag(widget, verifier, scheduler):
    scheduler.advance(1)

    verifier.complete()

    assert widget.state.verified is True


def test_submit_without_verification_never_calls_on_submit(widget, on_submit):
    widget.update_fields(name="Alice", email="a@x.com", message="It crashes")

    with pytest.raises(VerificationRequiredError):
        widget.submit()

    on_submit.assert_not_called()
    assert widget.phase is SubmissionPhase.IDLE
    assert widget.state.error is None
    assert widget.state.message == "It crashes"


def test_verification_error_is_user_friendly(widget):
    with pytest.raises(UserFriendlyError) as exc_info:
        widget.submit()

    assert "CAPTCHA" in exc_info.value.user_message


def test_verified_flag_alone_does_not_pass_gate(widget, on_submit, verifier):
    # The gate asks the verifier at submit time
    widget.on_verified()
    verifier.response = ""
    widget.update_fields(email="a@x.com", message="hi")

    with pytest.raises(VerificationRequiredError):
        widget.submit()

    on_submit.assert_not_called()


def test_verification_resets_after_send(verified_widget, verifier):
    verified_widget.submit()

    verified_widget.sent()

    assert verified_widget.state.verified is False
    assert verifier.reset_calls == 1
    assert verifier.get_response() == ""

"""Headless feedback widget: state machine, payload assembly and render projection."""

from slack_feedback.widget.core import FeedbackWidget, SubmissionHandle, UploadHandle, default_preview_url
from slack_feedback.widget.error_types import determine_error_type
from slack_feedback.widget.events import ClickDispatcher, ClickEvent, PrefixRoot
from slack_feedback.widget.options import WidgetOptions, WidgetTimings
from slack_feedback.widget.payload import FeedbackForm, FeedbackPayload, build_payload
from slack_feedback.widget.render import WidgetView, render_widget
from slack_feedback.widget.state import Category, ImageRef, SubmissionPhase, WidgetState
from slack_feedback.widget.timers import LoopScheduler, TimerSet
from slack_feedback.widget.verification import Verifier, VerifierMount

__all__ = [
    "Category",
    "ClickDispatcher",
    "ClickEvent",
    "FeedbackForm",
    "FeedbackPayload",
    "FeedbackWidget",
    "ImageRef",
    "LoopScheduler",
    "PrefixRoot",
    "SubmissionHandle",
    "SubmissionPhase",
    "TimerSet",
    "UploadHandle",
    "Verifier",
    "VerifierMount",
    "WidgetOptions",
    "WidgetState",
    "WidgetTimings",
    "WidgetView",
    "build_payload",
    "default_preview_url",
    "determine_error_type",
    "render_widget",
]

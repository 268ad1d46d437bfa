"""Feedback widget that forwards structured reports to a Slack incoming webhook."""

from slack_feedback.widget import Category, FeedbackPayload, FeedbackWidget, WidgetOptions, WidgetTimings

__version__ = "0.1.0"

__all__ = ["Category", "FeedbackPayload", "FeedbackWidget", "WidgetOptions", "WidgetTimings", "__version__"]

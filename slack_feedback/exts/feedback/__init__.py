"""Discord embedding of the feedback widget."""

from ._panel import CUSTOM_ID_PREFIX, TRIGGER_CUSTOM_ID

__all__ = ["CUSTOM_ID_PREFIX", "TRIGGER_CUSTOM_ID"]

"""Mapping from webhook failures to the messages shown on the submit button."""

from collections.abc import Mapping

UNEXPECTED_ERROR = "Unexpected Error!"
IMAGE_UPLOAD_ERROR = "Error Uploading Image!"

HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_GONE = 410
HTTP_STATUS_SERVER_ERROR = 500

ERROR_MESSAGES: dict[int, str] = {
    HTTP_STATUS_BAD_REQUEST: "Bad Request!",
    HTTP_STATUS_FORBIDDEN: "Forbidden!",
    HTTP_STATUS_NOT_FOUND: "Channel Not Found!",
    HTTP_STATUS_GONE: "Channel is Archived!",
    HTTP_STATUS_SERVER_ERROR: "Server Error!",
}


def _status_of(err: object) -> object:
    if isinstance(err, Mapping):
        return err.get("status")
    return getattr(err, "status", None)


def determine_error_type(err: object) -> str:
    """Return the display string for an error carrying a numeric ``status``.

    ``err`` may be an object with a ``status`` attribute (such as ``WebhookError``)
    or a mapping with a ``"status"`` key. Anything else is reported as unexpected.
    """
    if err is None or isinstance(err, (str, bytes)):
        return UNEXPECTED_ERROR

    status = _status_of(err)
    # bool is an int subclass; True is not a status code
    if not isinstance(status, int) or isinstance(status, bool):
        return UNEXPECTED_ERROR

    return ERROR_MESSAGES.get(status, UNEXPECTED_ERROR)

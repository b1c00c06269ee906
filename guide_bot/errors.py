"""Error types raised by the guide workflow.

Every error carries a ``message`` that is safe to show to the user who
triggered it.  The UI layer catches :class:`GuideError` and replies with that
message; :class:`StorageFailure` is logged first and shown generically.
"""

from __future__ import annotations


class GuideError(Exception):
    """Base class for user-facing guide errors."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDenied(GuideError):
    default_message = "You do not have permission to do that."


class NotConfigured(GuideError):
    default_message = (
        "The guide system has not been set up on this server yet. "
        "Ask a server administrator to run `/guides-setup roles`."
    )


class SessionExpired(GuideError):
    default_message = "Session expired. Please start over."


class TargetNotFound(GuideError):
    default_message = "Guide not found."


class InvalidSubmission(GuideError):
    default_message = "The submitted form was incomplete."


class StorageFailure(GuideError):
    default_message = "Could not save your changes right now. Please try again."

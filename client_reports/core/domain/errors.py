"""Client report error types."""

from __future__ import annotations


class ClientReportError(Exception):
    """Base class for client report errors."""


class MalformedPayload(ClientReportError):
    """A client report or envelope could not be decoded.

    Raised for missing or mistyped required fields and negative quantities.
    The underlying JSON or validation error is chained as ``__cause__``.
    """


class AttachmentFailed(ClientReportError):
    """The transport did not accept a serialized client report item.

    Built for logging and event emission only. The scheduler never raises
    it to the host and never retries.
    """

    def __init__(self, message: str, *, trigger: str, lost_quantity: int) -> None:
        super().__init__(message)
        self.trigger = trigger
        self.lost_quantity = lost_quantity

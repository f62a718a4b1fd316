"""Well-known discard reasons and data categories.

Both vocabularies are open. The constants below name the values SDKs and
relays emit today; any other non-empty string is equally valid and must be
carried through unchanged.
"""

from __future__ import annotations


class DiscardReason:
    """Why an event was dropped before reaching its destination."""

    QUEUE_OVERFLOW = "queue_overflow"
    CACHE_OVERFLOW = "cache_overflow"
    BUFFER_OVERFLOW = "buffer_overflow"
    RATELIMIT_BACKOFF = "ratelimit_backoff"
    NETWORK_ERROR = "network_error"
    SEND_ERROR = "send_error"
    SAMPLE_RATE = "sample_rate"
    BEFORE_SEND = "before_send"
    EVENT_PROCESSOR = "event_processor"
    INSUFFICIENT_DATA = "insufficient_data"
    BACKPRESSURE = "backpressure"
    INTERNAL_SDK_ERROR = "internal_sdk_error"


class DataCategory:
    """Kind of data an outcome refers to."""

    DEFAULT = "default"
    ERROR = "error"
    TRANSACTION = "transaction"
    SECURITY = "security"
    ATTACHMENT = "attachment"
    SESSION = "session"
    INTERNAL = "internal"
    PROFILE = "profile"
    MONITOR = "monitor"
    REPLAY = "replay"
    SPAN = "span"


KNOWN_DISCARD_REASONS: frozenset[str] = frozenset(
    value for name, value in vars(DiscardReason).items() if name.isupper()
)

KNOWN_DATA_CATEGORIES: frozenset[str] = frozenset(
    value for name, value in vars(DataCategory).items() if name.isupper()
)


def is_known_reason(reason: str) -> bool:
    """Return True if the reason is one of the well-known values."""
    return reason in KNOWN_DISCARD_REASONS

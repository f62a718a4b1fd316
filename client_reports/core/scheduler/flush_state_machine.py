"""
Flush scheduler state machine definitions.

This module defines the scheduler states and the allowed transitions
between them. It is passive and validation-only: the scheduler consults
it to log unexpected transitions, it never raises from it.
"""

from __future__ import annotations

IDLE: str = "idle"
ARMED: str = "armed"
FLUSHING: str = "flushing"

FLUSH_STATES: frozenset[str] = frozenset({IDLE, ARMED, FLUSHING})

# Allowed flush state transitions.
#
# Key   : previous state
# Value : set of allowed next states
#
# Notes:
# - IDLE -> FLUSHING covers a flush that finds the tally empty (or drains
#   increments that raced ahead of arming); it returns to IDLE without a report.
# - ARMED -> ARMED is a repeated increment.
# - ARMED -> IDLE only happens on shutdown, which discards the pending tally.
# - FLUSHING -> ARMED when increments arrived after the drain.
FLUSH_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    IDLE: frozenset(
        {
            ARMED,
            FLUSHING,
        }
    ),

    ARMED: frozenset(
        {
            ARMED,
            FLUSHING,
            IDLE,
        }
    ),

    FLUSHING: frozenset(
        {
            IDLE,
            ARMED,
        }
    ),
}


def is_valid_transition(prev_state: str, next_state: str) -> bool:
    """Return True if the transition prev_state -> next_state is allowed."""
    allowed = FLUSH_ALLOWED_TRANSITIONS.get(prev_state)
    if allowed is None:
        return False
    return next_state in allowed

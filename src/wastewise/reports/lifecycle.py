"""Report lifecycle state machine.

State progression: pending -> in_progress -> collected -> verified
The in_progress claim step may be skipped (pending -> collected).
No skipping to verified, no going backwards.
"""

from __future__ import annotations

from wastewise.errors import InvalidTransitionError, ValidationError

PENDING = "pending"
IN_PROGRESS = "in_progress"
COLLECTED = "collected"
VERIFIED = "verified"

VALID_TRANSITIONS: dict[str, list[str]] = {
    PENDING: [IN_PROGRESS, COLLECTED],
    IN_PROGRESS: [COLLECTED],
    COLLECTED: [VERIFIED],
    VERIFIED: [],
}

# Statuses that only make sense once a collector has been assigned.
COLLECTOR_REQUIRED = frozenset({IN_PROGRESS, COLLECTED, VERIFIED})


def validate_status(status: str) -> None:
    """Raise ValidationError for a status the lifecycle does not know."""
    if status not in VALID_TRANSITIONS:
        raise ValidationError(
            f"Unknown report status: {status}. Valid statuses: {list(VALID_TRANSITIONS)}"
        )


def validate_transition(current_status: str, target_status: str) -> None:
    """Validate a state transition. Raises InvalidTransitionError if invalid."""
    validate_status(target_status)
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        raise InvalidTransitionError(
            f"Invalid transition: {current_status} -> {target_status}. "
            f"Valid transitions: {valid}"
        )

"""Domain error taxonomy.

Every service raises one of these instead of returning a null sentinel.
The HTTP layer maps ``status_code`` straight onto the response.
"""

from __future__ import annotations


class WasteWiseError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(WasteWiseError):
    """Bad input shape or range."""

    status_code = 422


class InvalidTransitionError(ValidationError):
    """A report status change that the lifecycle does not allow."""

    status_code = 409


class NotFoundError(WasteWiseError):
    """A referenced entity does not exist."""

    status_code = 404


class InsufficientBalanceError(WasteWiseError):
    """A redemption would drive the balance below zero."""

    status_code = 409

    def __init__(self, balance: int, cost: int) -> None:
        super().__init__(f"Insufficient balance: {balance} points available, {cost} required")
        self.balance = balance
        self.cost = cost


class PersistenceError(WasteWiseError):
    """The store failed; nothing was committed and the operation can be retried."""

    status_code = 503

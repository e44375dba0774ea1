from __future__ import annotations

from typing import Optional


class WillError(RuntimeError):
    """Base error for will storage and lifecycle operations."""

    code = "will_error"


class StoreUnavailableError(WillError):
    """The key/value store reported itself unavailable; nothing was read."""

    code = "store_unavailable"


class DecodeError(WillError):
    """Stored bytes could not be parsed into a record or index."""

    code = "decode_error"


class NotFoundError(WillError):
    """No record is stored under the requested id."""

    code = "not_found"

    def __init__(self, will_id: str) -> None:
        super().__init__(f"Will not found: {will_id}")
        self.will_id = will_id


class InvalidTransitionError(WillError):
    """The record's current status does not allow the requested transition."""

    code = "invalid_transition"

    def __init__(self, will_id: str, current: str, target: str) -> None:
        super().__init__(f"Cannot move will {will_id} from {current} to {target}")
        self.will_id = will_id
        self.current = current
        self.target = target


class NotAuthorizedError(WillError):
    """Acting identity is not the record owner."""

    code = "not_authorized"


class InvalidWillError(WillError, ValueError):
    """Create inputs failed validation (empty owner, beneficiary or payload)."""

    code = "invalid_will"


class TransportError(WillError):
    """The underlying store rejected or failed a read or write."""

    code = "transport_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransactionRejectedError(TransportError):
    """The signer declined the write (e.g. user rejected the transaction)."""

    code = "rejected"


__all__ = [
    "WillError",
    "StoreUnavailableError",
    "DecodeError",
    "NotFoundError",
    "InvalidTransitionError",
    "NotAuthorizedError",
    "InvalidWillError",
    "TransportError",
    "TransactionRejectedError",
]

"""Error kinds raised by the venue/restaurant sync services.

Every error carries a stable ``kind`` string that callers can switch on and an
HTTP status used by the router layer. Messages are for logs and API clients,
not for display.
"""

from __future__ import annotations


class SyncError(Exception):
    kind = "sync_error"
    status_code = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class NotFound(SyncError):
    kind = "not_found"
    status_code = 404


class Forbidden(SyncError):
    kind = "forbidden"
    status_code = 403


class InvalidInput(SyncError):
    kind = "invalid_input"
    status_code = 422


class AlreadyAssociated(SyncError):
    kind = "already_associated"
    status_code = 409


class AlreadyTerminal(SyncError):
    kind = "already_terminal"
    status_code = 409

    def __init__(self, message: str | None = None, *, status: str | None = None):
        super().__init__(message or (f"Record is already {status}" if status else None))
        self.status = status


class DuplicateRequest(SyncError):
    kind = "duplicate_request"
    status_code = 409


class ConflictingAssociation(SyncError):
    kind = "conflicting_association"
    status_code = 409


class NotAssociated(SyncError):
    kind = "not_associated"
    status_code = 409


class CapacityExceeded(SyncError):
    kind = "capacity_exceeded"
    status_code = 409


class Expired(SyncError):
    kind = "expired"
    status_code = 410

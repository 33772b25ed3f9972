"""
Error taxonomy for ledger operations.

Every error carries a stable ``code`` (used in API responses), the HTTP
status it maps to and a human-readable message shown to the end user.
"""

from typing import Optional


class LedgerError(Exception):
    code = "ledger_error"
    status_code = 400
    default_message = "Operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "detail": self.message}


class Unauthenticated(LedgerError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Invalid or expired token"


class NotAuthorized(LedgerError):
    code = "not_authorized"
    status_code = 403
    default_message = "You are not allowed to perform this action"


class AlreadySelected(LedgerError):
    code = "already_selected"
    status_code = 409
    default_message = "You already have a camp selected. Please cancel your current selection first."


class NoActiveSelection(LedgerError):
    code = "no_active_selection"
    status_code = 404
    default_message = "No active camp selection found"


class CampNotFound(LedgerError):
    code = "camp_not_found"
    status_code = 404
    default_message = "Camp not found"


class CampFull(LedgerError):
    code = "camp_full"
    status_code = 409
    default_message = "This camp is full"


class Conflict(LedgerError):
    code = "conflict"
    status_code = 409
    default_message = "Camp availability changed while processing your request. Please try again."


class ConstraintViolation(LedgerError):
    code = "constraint_violation"
    status_code = 409
    default_message = "Operation violates a data constraint"


class StoreUnavailable(LedgerError):
    code = "store_unavailable"
    status_code = 503
    default_message = "Service temporarily unavailable. Please refresh and try again."


# Business-rule violations are reported to the user as-is and never retried
BUSINESS_ERRORS = (NotAuthorized, AlreadySelected, NoActiveSelection, CampNotFound, CampFull, ConstraintViolation)

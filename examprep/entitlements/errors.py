"""
Entitlement error hierarchy.

Denials are not errors: they are returned as AccessDecision values. These
exceptions cover the unexpected cases only.

Provides:
- EntitlementError: base for all entitlement failures
- UserNotFoundError: a session points at a user that does not exist
- EntitlementEvaluationError: evaluation failed (fail-closed)
"""

from typing import Optional


class EntitlementError(Exception):
    """Base exception for entitlement-related failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UserNotFoundError(EntitlementError):
    """
    Raised when the user record behind a valid session is missing.

    This is an internal inconsistency: callers must log and surface a server
    error, never treat it as an ordinary "access denied".
    """

    def __init__(self, user_id: str):
        self.user_id = user_id
        self.error_code = "USER_NOT_FOUND"
        super().__init__(f"User {user_id} not found")


class EntitlementEvaluationError(EntitlementError):
    """
    Raised when entitlement data could not be loaded.

    Carries a machine-readable error_code for the UI to display.
    """

    def __init__(
        self,
        user_id: str,
        detail: str,
        cause: Optional[Exception] = None,
    ):
        self.user_id = user_id
        self.detail = detail
        self.cause = cause
        self.error_code = "ENTITLEMENT_EVAL_FAILED"
        super().__init__(f"Entitlement evaluation failed for {user_id}: {detail}")

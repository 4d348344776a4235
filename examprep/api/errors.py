"""
Translate service-level exceptions into AppError responses.

Routes catch their service's base exception and re-raise the result of
to_app_error(); ErrorHandlerMiddleware renders it.
"""

from fastapi import status

from examprep.billing import (
    AlreadyOnboardedError,
    FreePlanOrderError,
    OnboardingUserNotFoundError,
    OnboardingValidationError,
    OrderNotFoundError,
    OrganizationNotFoundError as PaymentOrganizationNotFoundError,
    PaymentAmountMismatchError,
    PaymentUserNotFoundError,
    PlanNotFoundError,
)
from examprep.entitlements import EntitlementEvaluationError
from examprep.organizations import (
    AlreadyMemberError,
    InvalidJoinRequestStateError,
    JoinRequestNotFoundError,
    JoinRequestUserNotFoundError,
    NotOrganizationOwnerError,
    OrganizationNotFoundError,
)
from examprep.platform.errors import (
    AppError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


def to_app_error(exc: Exception) -> AppError:
    """Map a known service exception to its API error; unknown ones become 500s."""
    # Billing
    if isinstance(exc, PlanNotFoundError):
        return NotFoundError("Plan")
    if isinstance(exc, (PaymentUserNotFoundError, OnboardingUserNotFoundError, JoinRequestUserNotFoundError)):
        return NotFoundError("User")
    if isinstance(exc, OrderNotFoundError):
        return NotFoundError("Order")
    if isinstance(exc, FreePlanOrderError):
        return ValidationError(str(exc))
    if isinstance(exc, PaymentAmountMismatchError):
        return ValidationError(
            "Payment amount mismatch",
            details={"reference": exc.reference, "expected": exc.expected_minor},
        )
    if isinstance(exc, PaymentOrganizationNotFoundError):
        return ConflictError(str(exc))

    # Onboarding
    if isinstance(exc, OnboardingValidationError):
        return ValidationError(str(exc))
    if isinstance(exc, AlreadyOnboardedError):
        return ConflictError(str(exc))

    # Organizations
    if isinstance(exc, OrganizationNotFoundError):
        return NotFoundError("Organization")
    if isinstance(exc, JoinRequestNotFoundError):
        return NotFoundError("Join request")
    if isinstance(exc, NotOrganizationOwnerError):
        return PermissionDeniedError(str(exc))
    if isinstance(exc, (AlreadyMemberError, InvalidJoinRequestStateError)):
        return ConflictError(str(exc))

    # Entitlements
    if isinstance(exc, EntitlementEvaluationError):
        return AppError(
            code=exc.error_code,
            message="We could not load your plan right now. Please try again shortly.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return AppError()

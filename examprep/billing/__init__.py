"""
Billing: plan intervals, orders, payment fulfillment, webhooks and onboarding.
"""

from examprep.billing.intervals import add_months, calculate_end_date
from examprep.billing.onboarding import (
    AlreadyOnboardedError,
    OnboardingError,
    OnboardingResult,
    OnboardingService,
    OnboardingUserNotFoundError,
    OnboardingValidationError,
)
from examprep.billing.payment_service import (
    FreePlanOrderError,
    OrderNotFoundError,
    OrganizationNotFoundError,
    PaymentAmountMismatchError,
    PaymentService,
    PaymentServiceError,
    PaymentUserNotFoundError,
    PlanNotFoundError,
    generate_reference,
)
from examprep.billing.webhook import SIGNATURE_HEADER, verify_webhook_signature

__all__ = [
    "add_months",
    "calculate_end_date",
    "AlreadyOnboardedError",
    "OnboardingError",
    "OnboardingResult",
    "OnboardingService",
    "OnboardingUserNotFoundError",
    "OnboardingValidationError",
    "FreePlanOrderError",
    "OrderNotFoundError",
    "OrganizationNotFoundError",
    "PaymentAmountMismatchError",
    "PaymentService",
    "PaymentServiceError",
    "PaymentUserNotFoundError",
    "PlanNotFoundError",
    "generate_reference",
    "SIGNATURE_HEADER",
    "verify_webhook_signature",
]

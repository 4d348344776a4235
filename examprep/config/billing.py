"""
Billing and plan-feature configuration.

Values come from environment variables with safe defaults. Secrets are read
at call time so tests and rotated deployments pick up the current value.
"""

import os
from typing import Optional

# Currency every order is charged in
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "NGN")

# Prefix for generated order references (shared with the payment provider)
ORDER_REFERENCE_PREFIX = os.getenv("ORDER_REFERENCE_PREFIX", "PREP_")

# Provider reports amounts in minor units (kobo); plans are priced in naira
MINOR_UNITS_PER_MAJOR = 100

# allowedExams entry meaning "every exam"
FEATURE_ALL_SENTINEL = "ALL"


def get_webhook_secret() -> Optional[str]:
    """Secret used to sign payment provider webhooks."""
    return os.getenv("PAYSTACK_SECRET_KEY")

"""Configuration module for backend services."""

from examprep.config.billing import (
    FEATURE_ALL_SENTINEL,
    MINOR_UNITS_PER_MAJOR,
    ORDER_REFERENCE_PREFIX,
    PAYMENT_CURRENCY,
    get_webhook_secret,
)

__all__ = [
    "FEATURE_ALL_SENTINEL",
    "MINOR_UNITS_PER_MAJOR",
    "ORDER_REFERENCE_PREFIX",
    "PAYMENT_CURRENCY",
    "get_webhook_secret",
]

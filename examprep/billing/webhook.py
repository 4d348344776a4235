"""
Payment provider webhook verification.

The provider signs the raw request body with HMAC-SHA512 using the account
secret key and sends the hex digest in the x-paystack-signature header.
"""

import hashlib
import hmac
import logging
from typing import Optional

from examprep.config.billing import get_webhook_secret

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"
CHARGE_SUCCESS_EVENT = "charge.success"


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    signature: Optional[str],
    secret: Optional[str] = None,
) -> bool:
    """
    Verify a webhook signature against the raw body.

    Args:
        payload: Raw request body bytes (must not be re-serialized)
        signature: x-paystack-signature header value
        secret: Signing secret (uses PAYSTACK_SECRET_KEY if not provided)

    Returns:
        True if signature is valid
    """
    secret = secret or get_webhook_secret()
    if not secret:
        logger.error("PAYSTACK_SECRET_KEY not configured for webhook verification")
        return False
    if not signature:
        return False

    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected, signature)

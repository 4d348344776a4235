"""
Alerts for entitlement evaluation failures and repeated deny events.
"""

import logging
import os
import time
from collections import defaultdict

logger = logging.getLogger(__name__)

# Deny timestamps per user within the last window; users with none are dropped
_deny_counts: defaultdict[str, list] = defaultdict(list)
DENY_THRESHOLD_PER_MIN = int(os.getenv("DENY_THRESHOLD_PER_MIN", "10"))
DENY_WINDOW_SECONDS = 60


def emit_evaluation_failure(user_id: str, error_message: str) -> None:
    """Access could not be evaluated; the request was denied (fail closed)."""
    logger.error(
        "Entitlement evaluation failure",
        extra={"user_id": user_id, "error": error_message},
    )


def _prune(now: float) -> None:
    cutoff = now - DENY_WINDOW_SECONDS
    for user_id in list(_deny_counts):
        recent = [t for t in _deny_counts[user_id] if t > cutoff]
        if recent:
            _deny_counts[user_id] = recent
        else:
            del _deny_counts[user_id]


def record_deny_and_alert(user_id: str, reason: str) -> None:
    """Record a deny event; alert if the user crosses the per-minute threshold."""
    now = time.time()
    _deny_counts[user_id].append(now)
    _prune(now)
    count = len(_deny_counts[user_id])
    if count >= DENY_THRESHOLD_PER_MIN:
        emit_deny_alert(user_id, reason, count)


def emit_deny_alert(user_id: str, reason: str, count: int) -> None:
    """Alert on repeated deny events (>N/min), e.g. a client hammering a paywalled exam."""
    logger.warning(
        "Repeated entitlement deny events",
        extra={"user_id": user_id, "reason": reason, "count_per_min": count},
    )


def reset_deny_counts() -> None:
    _deny_counts.clear()

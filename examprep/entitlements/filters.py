"""
Plan filter projector.

Turns the active plan's feature allow-lists into catalog restrictions so that
listing queries show only what the user may open.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from examprep.entitlements.errors import EntitlementEvaluationError, UserNotFoundError
from examprep.entitlements.features import (
    ALLOWED_EXAMS_KEY,
    ALLOWED_SUBJECT_IDS_KEY,
    ALLOWED_YEARS_KEY,
    FeatureRestriction,
    RestrictionKind,
)
from examprep.entitlements.models import PlanFilters
from examprep.entitlements.plan_resolver import load_user_with_subscriptions, resolve_active_subscription
from examprep.utils.time import as_utc, utcnow

logger = logging.getLogger(__name__)


def get_plan_filters(db: Session, user_id: str, now: Optional[datetime] = None) -> PlanFilters:
    """
    Project the user's active plan onto catalog filters.

    With no active plan every filter blocks everything.

    Raises:
        UserNotFoundError: the user does not exist
        EntitlementEvaluationError: the subscription graph could not be loaded
    """
    compare_at = as_utc(now) if now else utcnow()

    try:
        user = load_user_with_subscriptions(db, user_id)
    except SQLAlchemyError as e:
        logger.error("Plan filter lookup failed", extra={"user_id": user_id, "error": str(e)})
        raise EntitlementEvaluationError(user_id, str(e), cause=e) from e

    if user is None:
        raise UserNotFoundError(user_id)

    active = resolve_active_subscription(user, compare_at)
    if active is None:
        logger.debug("No active plan, blocking catalog", extra={"user_id": user_id})
        return PlanFilters.block_all()

    features = active.plan.features or {}
    return PlanFilters(
        allowed_exam_ids=FeatureRestriction.from_features(features, ALLOWED_EXAMS_KEY),
        allowed_subject_ids=FeatureRestriction.from_features(features, ALLOWED_SUBJECT_IDS_KEY),
        allowed_years=FeatureRestriction.from_features(features, ALLOWED_YEARS_KEY),
    )


def year_restriction(restriction: FeatureRestriction) -> FeatureRestriction:
    """Coerce stored year values to int so they compare against an Integer column."""
    if restriction.kind != RestrictionKind.ONLY_THESE or restriction.is_unrestricted:
        return restriction
    years = []
    for value in restriction.values:
        try:
            years.append(int(value))
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric allowed year", extra={"value": value})
    return FeatureRestriction.only(years)


def apply_restriction(query: Query, restriction: FeatureRestriction, *columns) -> Optional[Query]:
    """
    Narrow query by restriction over one or more columns.

    Returns None for NONE_ALLOWED so the caller can return an empty result
    without touching the database. Unrestricted (absent key or "ALL") returns
    the query unchanged. Otherwise a row matches if any column is in the list.
    """
    if restriction.is_none_allowed:
        return None
    if restriction.is_unrestricted:
        return query
    values = list(restriction.values)
    return query.filter(or_(*[column.in_(values) for column in columns]))

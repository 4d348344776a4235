"""
Access control and subscription-state resolution.

This module provides:
- resolve_access: may this user open this resource right now (fails closed)
- get_status: advisory billing snapshot for UI gating (fails soft)
- get_plan_filters: catalog restrictions from the active plan
- resolve_active_subscription: organization-over-personal plan lookup shared by all three
- FeatureRestriction: tagged three-state plan allow-list

No grace period: a subscription is expired the moment end_date is reached.
"""

from examprep.entitlements.errors import (
    EntitlementError,
    EntitlementEvaluationError,
    UserNotFoundError,
)
from examprep.entitlements.features import (
    ALLOWED_EXAMS_KEY,
    ALLOWED_SUBJECT_IDS_KEY,
    ALLOWED_YEARS_KEY,
    FeatureRestriction,
    RestrictionKind,
)
from examprep.entitlements.models import (
    AccessContext,
    AccessDecision,
    ActiveSubscription,
    PlanFilters,
    SubscriptionStatus,
)
from examprep.entitlements.plan_resolver import (
    get_owned_organization,
    is_subscription_active,
    load_user_with_subscriptions,
    resolve_active_subscription,
    resolve_organization,
)
from examprep.entitlements.service import resolve_access
from examprep.entitlements.status import get_status
from examprep.entitlements.filters import apply_restriction, get_plan_filters, year_restriction

__all__ = [
    # Errors
    "EntitlementError",
    "EntitlementEvaluationError",
    "UserNotFoundError",
    # Features
    "ALLOWED_EXAMS_KEY",
    "ALLOWED_SUBJECT_IDS_KEY",
    "ALLOWED_YEARS_KEY",
    "FeatureRestriction",
    "RestrictionKind",
    # Values
    "AccessContext",
    "AccessDecision",
    "ActiveSubscription",
    "PlanFilters",
    "SubscriptionStatus",
    # Plan lookup
    "is_subscription_active",
    "load_user_with_subscriptions",
    "resolve_active_subscription",
    "resolve_organization",
    "get_owned_organization",
    # Operations
    "resolve_access",
    "get_status",
    "get_plan_filters",
    "apply_restriction",
    "year_restriction",
]

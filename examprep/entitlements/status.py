"""
Subscription status aggregator.

Describes (does not enforce) a user's billing state for UI gating:
- missing_subscription -> send the user to onboarding
- needs_payment        -> send the user to payment for plan_id, or tell an
                          organization member to contact the administrator

Fails soft: a database failure yields a neutral, degraded snapshot instead of
an error, because enforcement lives in the entitlement resolver.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from examprep.entitlements.errors import UserNotFoundError
from examprep.entitlements.models import SubscriptionStatus
from examprep.entitlements.plan_resolver import load_user_with_subscriptions, resolve_organization
from examprep.models.join_request import JoinRequest, JoinRequestStatus
from examprep.models.order import Order, OrderStatus
from examprep.models.organization import Organization
from examprep.models.subscription import Subscription
from examprep.models.user import User, UserRole
from examprep.utils.time import as_utc, utcnow

logger = logging.getLogger(__name__)

DEGRADED_MESSAGE = "We couldn't load your subscription status right now. Some features may be unavailable."


def get_status(db: Session, user_id: Optional[str], now: Optional[datetime] = None) -> SubscriptionStatus:
    """
    Compute the status snapshot for user_id (None for anonymous visitors).

    Anonymous visitors get SubscriptionStatus(authenticated=False) without any
    database access.

    Raises:
        UserNotFoundError: the session's user does not exist
    """
    if not user_id:
        return SubscriptionStatus.anonymous()

    compare_at = as_utc(now) if now else utcnow()

    try:
        return _build_status(db, user_id, compare_at)
    except SQLAlchemyError as e:
        logger.error(
            "Subscription status unavailable",
            extra={"user_id": user_id, "error": str(e)},
        )
        return SubscriptionStatus(
            authenticated=True,
            status_message=DEGRADED_MESSAGE,
            is_degraded=True,
        )


def _build_status(db: Session, user_id: str, now: datetime) -> SubscriptionStatus:
    user = load_user_with_subscriptions(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    role = user.role.value if user.role else None
    is_org_member = user.is_org_member
    subscription: Optional[Subscription] = None
    billing_org: Optional[Organization] = None

    organization = resolve_organization(user)
    if organization is not None and (
        user.role == UserRole.ORGANIZATION or organization.subscription is not None
    ):
        subscription = organization.subscription
        if organization.id == user.organization_id:
            billing_org = organization
    else:
        subscription = user.subscription

    has_pending_request = False
    if subscription is None:
        has_pending_request = _has_pending_join_request(db, user.id)

    missing_subscription = subscription is None and not has_pending_request

    needs_payment = False
    if subscription is not None:
        needs_payment = (subscription.plan.price or 0) > 0 and (
            not subscription.is_active or subscription.is_expired(now)
        )

    is_new_user = _successful_order_count(db, user.id) == 0

    message, action = _describe(
        subscription=subscription,
        billing_org=billing_org,
        missing_subscription=missing_subscription,
        has_pending_request=has_pending_request,
        needs_payment=needs_payment,
        is_new_user=is_new_user,
        now=now,
    )

    return SubscriptionStatus(
        authenticated=True,
        role=role,
        missing_subscription=missing_subscription,
        needs_payment=needs_payment,
        plan_id=subscription.plan_id if subscription is not None else None,
        is_new_user=is_new_user,
        is_org_member=is_org_member,
        status_message=message,
        action_required=action,
    )


def _has_pending_join_request(db: Session, user_id: str) -> bool:
    return (
        db.query(JoinRequest.id)
        .filter(
            JoinRequest.user_id == user_id,
            JoinRequest.status == JoinRequestStatus.PENDING,
        )
        .first()
        is not None
    )


def _successful_order_count(db: Session, user_id: str) -> int:
    return (
        db.query(func.count(Order.id))
        .filter(Order.user_id == user_id, Order.status == OrderStatus.SUCCESSFUL)
        .scalar()
        or 0
    )


def _administrator_label(organization: Organization) -> str:
    owner: Optional[User] = organization.owner
    if owner is None:
        return "your organization administrator"
    return f"your organization administrator ({owner.name or owner.email})"


def _describe(
    *,
    subscription: Optional[Subscription],
    billing_org: Optional[Organization],
    missing_subscription: bool,
    has_pending_request: bool,
    needs_payment: bool,
    is_new_user: bool,
    now: datetime,
):
    """Return (status_message, action_required)."""
    if has_pending_request:
        return "Your request to join an organization is awaiting approval.", None

    if missing_subscription:
        return "No subscription found. Choose a plan to get started.", "choose_plan"

    plan = subscription.plan

    if needs_payment:
        if billing_org is not None:
            # Members never pay individually
            return (
                f"{billing_org.name}'s subscription is inactive or has expired. "
                f"Please contact {_administrator_label(billing_org)}.",
                "contact_admin",
            )
        if is_new_user:
            return f"Complete payment to activate your {plan.name} plan.", "pay"
        return f"Your {plan.name} subscription has expired. Renew to regain access.", "pay"

    if not subscription.is_active or subscription.is_expired(now):
        return f"Your {plan.name} plan is no longer active. Choose a plan to continue.", "choose_plan"

    if subscription.end_date is not None:
        return f"Your {plan.name} plan is active until {as_utc(subscription.end_date):%Y-%m-%d}.", None
    return f"Your {plan.name} plan is active.", None

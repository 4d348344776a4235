"""
Single source of truth for "which subscription grants this user access right now".

The resolver, the status aggregator and the plan filter projector all go
through these functions; none of them walks the organization/personal
fallback chain on its own.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from examprep.entitlements.models import ActiveSubscription
from examprep.models.organization import Organization
from examprep.models.subscription import Subscription
from examprep.models.user import User
from examprep.utils.time import as_utc, utcnow

logger = logging.getLogger(__name__)


def load_user_with_subscriptions(db: Session, user_id: str) -> Optional[User]:
    """
    Load a user eagerly with every subscription path:
    member organization -> subscription -> plan,
    owned organization -> subscription -> plan,
    personal subscription -> plan.
    """
    return (
        db.query(User)
        .options(
            joinedload(User.subscription).joinedload(Subscription.plan),
            joinedload(User.organization)
            .joinedload(Organization.subscription)
            .joinedload(Subscription.plan),
            joinedload(User.owned_organization)
            .joinedload(Organization.subscription)
            .joinedload(Subscription.plan),
        )
        .filter(User.id == user_id)
        .first()
    )


def is_subscription_active(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    """
    A subscription counts as active iff is_active and it has not expired.

    end_date None never expires; end_date == now is already expired.
    """
    if subscription is None or not subscription.is_active:
        return False
    if subscription.end_date is None:
        return True
    return as_utc(subscription.end_date) > as_utc(now or utcnow())


def resolve_organization(user: User) -> Optional[Organization]:
    """The organization a user acts through: membership first, then ownership."""
    if user.organization is not None:
        return user.organization
    return user.owned_organization


def get_owned_organization(db: Session, owner_id: str) -> Optional[Organization]:
    """
    The organization owner_id owns, if any.

    Billing, onboarding and join-request management act through ownership
    only; membership never grants them.
    """
    return db.query(Organization).filter(Organization.owner_id == owner_id).first()


def resolve_active_subscription(user: User, now: Optional[datetime] = None) -> Optional[ActiveSubscription]:
    """
    Organization subscription (if active) over personal subscription (if active).

    Returns None when neither is active.
    """
    compare_at = now or utcnow()

    organization = resolve_organization(user)
    if organization is not None and is_subscription_active(organization.subscription, compare_at):
        return ActiveSubscription(subscription=organization.subscription, source="organization")

    if is_subscription_active(user.subscription, compare_at):
        return ActiveSubscription(subscription=user.subscription, source="personal")

    return None

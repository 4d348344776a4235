"""
Onboarding: choose a role and a plan in one atomic step.

Sets the user's role, creates the organization for ORGANIZATION users and
creates the subscription. Free plans are active immediately; paid plans start
inactive until payment fulfillment activates them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from examprep.billing.intervals import calculate_end_date
from examprep.entitlements.plan_resolver import get_owned_organization
from examprep.models.organization import Organization
from examprep.models.plan import Plan, PlanType
from examprep.models.subscription import Subscription
from examprep.models.user import User, UserRole
from examprep.utils.time import as_utc, utcnow

logger = logging.getLogger(__name__)

ONBOARDING_ROLES = {
    UserRole.STUDENT: PlanType.STUDENT,
    UserRole.ORGANIZATION: PlanType.ORGANIZATION,
}


class OnboardingError(Exception):
    """Base exception for onboarding errors."""
    pass


class OnboardingValidationError(OnboardingError):
    """Raised for a missing or invalid role, plan or organization name."""
    pass


class OnboardingUserNotFoundError(OnboardingError):
    """Raised when the user being onboarded does not exist."""
    pass


class AlreadyOnboardedError(OnboardingError):
    """Raised when the user already holds a subscription or organization."""
    pass


@dataclass(frozen=True)
class OnboardingResult:
    plan_id: str
    requires_payment: bool
    subscription_id: str
    organization_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": True,
            "requiresPayment": self.requires_payment,
            "planId": self.plan_id,
            "organizationId": self.organization_id,
        }


class OnboardingService:
    """Service for first-time role and plan selection."""

    def __init__(self, session: Session):
        self.session = session

    def onboard_user(
        self,
        user_id: str,
        role: str,
        plan_id: str,
        org_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> OnboardingResult:
        """
        Onboard a user atomically.

        Raises:
            OnboardingValidationError: Bad role, plan or organization name
            OnboardingUserNotFoundError: If the user doesn't exist
            AlreadyOnboardedError: If the user is already subscribed
        """
        user_role = self._parse_role(role)
        if not plan_id:
            raise OnboardingValidationError("Missing role or plan")

        plan = self.session.get(Plan, plan_id)
        if plan is None:
            raise OnboardingValidationError("Invalid plan")
        if plan.type != ONBOARDING_ROLES[user_role]:
            raise OnboardingValidationError(
                f"Plan {plan.name} is not available for {user_role.value.lower()} accounts"
            )

        org_name = (org_name or "").strip()
        if user_role == UserRole.ORGANIZATION and not org_name:
            raise OnboardingValidationError("Organization name is required")

        user = self.session.get(User, user_id)
        if user is None:
            raise OnboardingUserNotFoundError(f"User {user_id} not found")

        self._ensure_not_onboarded(user, user_role)

        start = as_utc(now) if now else utcnow()
        organization_id = None

        try:
            user.role = user_role

            if user_role == UserRole.ORGANIZATION:
                organization = Organization(name=org_name, owner_id=user.id)
                self.session.add(organization)
                self.session.flush()
                organization_id = organization.id

            subscription = Subscription(
                plan_id=plan.id,
                start_date=start,
                end_date=calculate_end_date(plan.interval, start),
                is_active=plan.is_free,
                user_id=user.id if user_role == UserRole.STUDENT else None,
                organization_id=organization_id,
            )
            self.session.add(subscription)
            self.session.flush()
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning("Onboarding conflict", extra={"user_id": user_id, "error": str(e)})
            raise AlreadyOnboardedError("User is already onboarded") from e
        except Exception:
            self.session.rollback()
            logger.exception("Onboarding failed, rolled back", extra={"user_id": user_id})
            raise

        logger.info(
            "User onboarded",
            extra={
                "user_id": user_id,
                "role": user_role.value,
                "plan_id": plan.id,
                "requires_payment": not plan.is_free,
                "organization_id": organization_id,
            }
        )

        return OnboardingResult(
            plan_id=plan.id,
            requires_payment=not plan.is_free,
            subscription_id=subscription.id,
            organization_id=organization_id,
        )

    def _parse_role(self, role) -> UserRole:
        if not role:
            raise OnboardingValidationError("Missing role or plan")
        try:
            user_role = UserRole(role)
        except ValueError:
            raise OnboardingValidationError(f"Invalid role: {role}") from None
        if user_role not in ONBOARDING_ROLES:
            raise OnboardingValidationError(f"Role {user_role.value} cannot be chosen at onboarding")
        return user_role

    def _ensure_not_onboarded(self, user: User, role: UserRole) -> None:
        if role == UserRole.ORGANIZATION:
            if get_owned_organization(self.session, user.id) is not None:
                raise AlreadyOnboardedError("User already owns an organization")
            return
        if self.session.query(Subscription.id).filter(Subscription.user_id == user.id).first():
            raise AlreadyOnboardedError("User already has a subscription")

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Literal, Optional

from examprep.entitlements.features import FeatureRestriction

if TYPE_CHECKING:
    from examprep.models.plan import Plan
    from examprep.models.subscription import Subscription

DecisionSource = Literal["assignment", "plan", "deny"]
SubscriptionSource = Literal["organization", "personal"]
ActionRequired = Literal["choose_plan", "pay", "contact_admin"]


@dataclass(frozen=True)
class AccessContext:
    """The resource a user is asking for. Every field is optional."""

    assignment_id: Optional[str] = None
    exam_id: Optional[str] = None
    subject_id: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class AccessDecision:
    """Allow/deny with a user-facing reason for denials."""

    allowed: bool
    reason: Optional[str] = None
    source: DecisionSource = "deny"
    plan_id: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def allow(cls, source: DecisionSource, plan_id: Optional[str] = None) -> "AccessDecision":
        return cls(allowed=True, source=source, plan_id=plan_id)

    @classmethod
    def deny(
        cls,
        reason: str,
        plan_id: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> "AccessDecision":
        return cls(allowed=False, reason=reason, source="deny", plan_id=plan_id, error_code=error_code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "source": self.source,
            "planId": self.plan_id,
            "errorCode": self.error_code,
        }


@dataclass(frozen=True)
class ActiveSubscription:
    """The subscription that currently grants a user access, and where it came from."""

    subscription: "Subscription"
    source: SubscriptionSource

    @property
    def plan(self) -> "Plan":
        return self.subscription.plan

    @property
    def plan_id(self) -> str:
        return self.subscription.plan_id


@dataclass(frozen=True)
class PlanFilters:
    """
    Catalog restrictions derived from the active plan.

    allowed_exam_ids holds the plan's allowedExams entries (exam display names
    or ids), allowed_subject_ids its allowedSubjectIds, allowed_years its
    allowedYears.
    """

    allowed_exam_ids: FeatureRestriction = field(default_factory=FeatureRestriction.unrestricted)
    allowed_subject_ids: FeatureRestriction = field(default_factory=FeatureRestriction.unrestricted)
    allowed_years: FeatureRestriction = field(default_factory=FeatureRestriction.unrestricted)

    @classmethod
    def block_all(cls) -> "PlanFilters":
        return cls(
            allowed_exam_ids=FeatureRestriction.none_allowed(),
            allowed_subject_ids=FeatureRestriction.none_allowed(),
            allowed_years=FeatureRestriction.none_allowed(),
        )

    def to_dict(self) -> Dict[str, list]:
        """Absent keys stay absent; empty and populated lists are kept verbatim."""
        data: Dict[str, list] = {}
        for name, restriction in (
            ("allowedExamIds", self.allowed_exam_ids),
            ("allowedSubjectIds", self.allowed_subject_ids),
            ("allowedYears", self.allowed_years),
        ):
            values = restriction.as_optional_list()
            if values is not None:
                data[name] = values
        return data


@dataclass(frozen=True)
class SubscriptionStatus:
    """Advisory snapshot of a user's billing state for UI gating."""

    authenticated: bool
    role: Optional[str] = None
    missing_subscription: bool = False
    needs_payment: bool = False
    plan_id: Optional[str] = None
    is_new_user: bool = False
    is_org_member: bool = False
    status_message: Optional[str] = None
    action_required: Optional[ActionRequired] = None
    is_degraded: bool = False

    @classmethod
    def anonymous(cls) -> "SubscriptionStatus":
        return cls(authenticated=False)

    def to_dict(self) -> Dict[str, Any]:
        if not self.authenticated:
            return {"authenticated": False}
        return {
            "authenticated": True,
            "role": self.role,
            "missingSubscription": self.missing_subscription,
            "needsPayment": self.needs_payment,
            "planId": self.plan_id,
            "isNewUser": self.is_new_user,
            "isOrgMember": self.is_org_member,
            "statusMessage": self.status_message,
            "actionRequired": self.action_required,
            "isDegraded": self.is_degraded,
        }

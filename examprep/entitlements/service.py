"""
Entitlement resolver: assignment -> organization subscription -> personal
subscription -> plan feature allow-lists -> deny.

Fails closed: if the records behind a decision cannot be loaded the answer is
deny, never allow.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from examprep.entitlements.errors import UserNotFoundError
from examprep.entitlements.features import (
    ALLOWED_EXAMS_KEY,
    ALLOWED_SUBJECT_IDS_KEY,
    ALLOWED_YEARS_KEY,
    FeatureRestriction,
)
from examprep.entitlements.models import AccessContext, AccessDecision, ActiveSubscription
from examprep.entitlements.plan_resolver import load_user_with_subscriptions, resolve_active_subscription
from examprep.models.assignment import Assignment, AssignmentWindow
from examprep.models.catalog import Exam, Subject
from examprep.models.user import User
from examprep.monitoring.entitlement_alerts import emit_evaluation_failure, record_deny_and_alert
from examprep.utils.time import as_utc, utcnow

logger = logging.getLogger(__name__)

EVAL_FAILED_ERROR_CODE = "ENTITLEMENT_EVAL_FAILED"
EVAL_FAILED_REASON = "We could not verify your access right now. Please try again shortly."


def format_window_time(value: datetime) -> str:
    return as_utc(value).strftime("%Y-%m-%d %H:%M UTC")


def resolve_access(
    db: Session,
    user_id: str,
    context: Optional[AccessContext] = None,
    now: Optional[datetime] = None,
) -> AccessDecision:
    """
    Decide whether user_id may access the resource in context right now.

    Raises:
        UserNotFoundError: the user does not exist (inconsistency, not a denial)
    """
    context = context or AccessContext()
    compare_at = as_utc(now) if now else utcnow()

    try:
        decision = _evaluate(db, user_id, context, compare_at)
    except SQLAlchemyError as e:
        logger.exception("Entitlement evaluation failed for user %s", user_id)
        emit_evaluation_failure(user_id, str(e))
        return AccessDecision.deny(EVAL_FAILED_REASON, error_code=EVAL_FAILED_ERROR_CODE)

    if not decision.allowed:
        logger.info(
            "Access denied",
            extra={
                "user_id": user_id,
                "reason": decision.reason,
                "assignment_id": context.assignment_id,
                "exam_id": context.exam_id,
            },
        )
        record_deny_and_alert(user_id, decision.reason or "")
    return decision


def _evaluate(db: Session, user_id: str, context: AccessContext, now: datetime) -> AccessDecision:
    user = load_user_with_subscriptions(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    # Assignment grants are unconditional within their window
    if context.assignment_id:
        return _check_assignment(db, user, context.assignment_id, now)

    active = resolve_active_subscription(user, now)
    if active is None:
        return AccessDecision.deny("No active subscription found. Choose a plan to continue.")

    return _check_plan_features(db, active, context)


def _check_assignment(db: Session, user: User, assignment_id: str, now: datetime) -> AccessDecision:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        return AccessDecision.deny("Assignment not found.")

    if user.organization_id is None or user.organization_id != assignment.organization_id:
        return AccessDecision.deny("You are not a member of the organization that issued this assignment.")

    window = assignment.window_state(now)
    if window == AssignmentWindow.UPCOMING:
        return AccessDecision.deny(
            f"This assignment has not started yet. It starts at {format_window_time(assignment.start_time)}."
        )
    if window == AssignmentWindow.CLOSED:
        return AccessDecision.deny("This assignment window has closed.")

    return AccessDecision.allow(source="assignment")


def _check_plan_features(db: Session, active: ActiveSubscription, context: AccessContext) -> AccessDecision:
    plan = active.plan
    features = plan.features or {}

    if context.exam_id is not None:
        exams = FeatureRestriction.from_features(features, ALLOWED_EXAMS_KEY)
        if not exams.is_unrestricted:
            exam = db.get(Exam, context.exam_id)
            if exam is None:
                return AccessDecision.deny("Exam not found.", plan_id=plan.id)
            if not exams.allows(exam.name, exam.id):
                return AccessDecision.deny(
                    f"Your {plan.name} plan does not include {exam.name}. Upgrade your plan to access it.",
                    plan_id=plan.id,
                )

    if context.subject_id is not None:
        subjects = FeatureRestriction.from_features(features, ALLOWED_SUBJECT_IDS_KEY)
        if not subjects.allows(context.subject_id):
            subject = db.get(Subject, context.subject_id)
            label = subject.name if subject is not None else "this subject"
            return AccessDecision.deny(
                f"Your {plan.name} plan does not include {label}.",
                plan_id=plan.id,
            )

    if context.year is not None:
        years = FeatureRestriction.from_features(features, ALLOWED_YEARS_KEY)
        if not years.allows(context.year):
            return AccessDecision.deny(
                f"Year {context.year} is not available on your {plan.name} plan.",
                plan_id=plan.id,
            )

    return AccessDecision.allow(source="plan", plan_id=plan.id)

"""
Tests for the subscription status aggregator.

Tests cover:
- Anonymous callers (no database access)
- missing_subscription vs pending join requests
- needs_payment for paid plans, free plans and lapsed subscriptions
- Organization members directed to the organization owner
- is_new_user from successful orders
- Fail-soft degraded snapshot on database errors
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from examprep.entitlements import UserNotFoundError, get_status
from examprep.models.order import OrderStatus
from examprep.models.plan import PlanType
from examprep.models.user import UserRole


class TestAnonymous:

    def test_anonymous_has_only_authenticated_false(self):
        db = MagicMock(spec=Session)

        status = get_status(db, None)

        assert status.to_dict() == {"authenticated": False}
        assert db.mock_calls == []


class TestMissingSubscription:

    def test_no_subscription(self, db_session, now, make_user):
        student = make_user()

        status = get_status(db_session, student.id, now=now)

        assert status.authenticated
        assert status.missing_subscription
        assert not status.needs_payment
        assert status.action_required == "choose_plan"

    def test_pending_join_request_suppresses_missing(
        self, db_session, now, make_user, make_organization, make_join_request
    ):
        student = make_user()
        make_join_request(student, make_organization())

        status = get_status(db_session, student.id, now=now)

        assert not status.missing_subscription
        assert not status.needs_payment
        assert "awaiting approval" in status.status_message

    def test_rejected_join_request_does_not_suppress(
        self, db_session, now, make_user, make_organization, make_join_request
    ):
        from examprep.models.join_request import JoinRequestStatus

        student = make_user()
        make_join_request(student, make_organization(), status=JoinRequestStatus.REJECTED)

        assert get_status(db_session, student.id, now=now).missing_subscription


class TestNeedsPayment:

    def test_free_plan_needs_nothing(self, db_session, now, make_user, make_plan, make_subscription):
        student = make_user()
        plan = make_plan(name="Free", price=0)
        make_subscription(plan, user=student, is_active=True)

        status = get_status(db_session, student.id, now=now)

        assert not status.needs_payment
        assert not status.missing_subscription
        assert status.plan_id == plan.id
        assert status.action_required is None

    def test_unpaid_plan_needs_payment(self, db_session, now, make_user, make_plan, make_subscription):
        student = make_user()
        plan = make_plan(name="Pro", price=5000)
        make_subscription(plan, user=student, is_active=False)

        status = get_status(db_session, student.id, now=now)

        assert status.needs_payment
        assert status.plan_id == plan.id
        assert status.action_required == "pay"
        assert status.is_new_user

    def test_expired_paid_plan_needs_payment(
        self, db_session, now, make_user, make_plan, make_subscription, make_order
    ):
        student = make_user()
        plan = make_plan(name="Pro", price=5000)
        make_subscription(plan, user=student, is_active=True, end_date=now - timedelta(days=1))
        make_order(student, plan, status=OrderStatus.SUCCESSFUL)

        status = get_status(db_session, student.id, now=now)

        assert status.needs_payment
        assert not status.is_new_user
        assert "expired" in status.status_message

    def test_active_paid_plan(self, db_session, now, make_user, make_plan, make_subscription):
        student = make_user()
        make_subscription(make_plan(name="Pro", price=5000), user=student, is_active=True)

        status = get_status(db_session, student.id, now=now)

        assert not status.needs_payment
        assert "active" in status.status_message


class TestOrganizations:

    def test_member_with_lapsed_org_plan_contacts_owner(
        self, db_session, now, make_user, make_plan, make_organization, make_subscription
    ):
        owner = make_user(role=UserRole.ORGANIZATION, name="Mrs Adeyemi")
        org = make_organization(name="Bright Minds", owner=owner)
        plan = make_plan(name="School", price=50000, plan_type=PlanType.ORGANIZATION)
        make_subscription(plan, organization=org, is_active=False)
        student = make_user(organization=org)

        status = get_status(db_session, student.id, now=now)

        assert status.is_org_member
        assert status.needs_payment
        assert status.action_required == "contact_admin"
        assert "Mrs Adeyemi" in status.status_message

    def test_member_prefers_org_subscription(
        self, db_session, now, make_user, make_plan, make_organization, make_subscription
    ):
        org = make_organization()
        org_plan = make_plan(name="School", price=50000, plan_type=PlanType.ORGANIZATION)
        make_subscription(org_plan, organization=org)
        student = make_user(organization=org)
        make_subscription(make_plan(name="Solo", price=2000), user=student, is_active=False)

        status = get_status(db_session, student.id, now=now)

        assert status.plan_id == org_plan.id
        assert not status.needs_payment

    def test_member_without_org_subscription_uses_personal(
        self, db_session, now, make_user, make_plan, make_organization, make_subscription
    ):
        org = make_organization()
        student = make_user(organization=org)
        personal = make_plan(name="Solo", price=2000)
        make_subscription(personal, user=student, is_active=False)

        status = get_status(db_session, student.id, now=now)

        assert status.is_org_member
        assert status.plan_id == personal.id
        assert status.action_required == "pay"

    def test_owner_sees_owned_org_subscription(
        self, db_session, now, make_plan, make_organization, make_subscription
    ):
        org = make_organization()
        plan = make_plan(name="School", price=50000, plan_type=PlanType.ORGANIZATION)
        make_subscription(plan, organization=org, is_active=False)

        status = get_status(db_session, org.owner_id, now=now)

        assert status.role == "ORGANIZATION"
        assert not status.is_org_member
        assert status.needs_payment
        assert status.action_required == "pay"
        assert status.plan_id == plan.id

    def test_owner_without_org_subscription_is_missing(self, db_session, now, make_organization):
        org = make_organization()

        status = get_status(db_session, org.owner_id, now=now)

        assert status.missing_subscription
        assert status.action_required == "choose_plan"


class TestStatusFailures:

    def test_missing_user_raises(self, db_session, now):
        with pytest.raises(UserNotFoundError):
            get_status(db_session, "ghost", now=now)

    def test_database_error_degrades(self):
        db = MagicMock(spec=Session)
        db.query.side_effect = OperationalError("SELECT 1", {}, Exception("timeout"))

        status = get_status(db, "user-1")

        assert status.authenticated
        assert status.is_degraded
        assert not status.missing_subscription
        assert not status.needs_payment
        assert status.to_dict()["isDegraded"] is True

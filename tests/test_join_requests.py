"""
Tests for JoinRequestService.

Tests cover:
- Creating requests (duplicates, existing members, reopen after rejection)
- Owner-only approval setting membership atomically
- Rejection
"""

import pytest

from examprep.entitlements import AccessContext, get_status, resolve_access
from examprep.models.join_request import JoinRequestStatus
from examprep.models.plan import PlanType
from examprep.models.user import User
from examprep.organizations import (
    AlreadyMemberError,
    InvalidJoinRequestStateError,
    JoinRequestNotFoundError,
    JoinRequestService,
    NotOrganizationOwnerError,
    OrganizationNotFoundError,
)


@pytest.fixture
def service(db_session):
    return JoinRequestService(db_session)


class TestCreateRequest:

    def test_creates_pending_request(self, service, make_user, make_organization):
        org = make_organization()
        student = make_user()

        join_request = service.create_request(student.id, org.id)

        assert join_request.status == JoinRequestStatus.PENDING

    def test_duplicate_returns_existing(self, service, make_user, make_organization):
        org = make_organization()
        student = make_user()

        first = service.create_request(student.id, org.id)
        second = service.create_request(student.id, org.id)

        assert first.id == second.id

    def test_existing_member_rejected(self, service, make_user, make_organization):
        org = make_organization()
        student = make_user(organization=make_organization(name="Elsewhere"))

        with pytest.raises(AlreadyMemberError):
            service.create_request(student.id, org.id)

    def test_unknown_organization(self, service, make_user):
        with pytest.raises(OrganizationNotFoundError):
            service.create_request(make_user().id, "missing")

    def test_rejected_request_can_be_reopened(self, service, make_user, make_organization, make_join_request):
        org = make_organization()
        student = make_user()
        previous = make_join_request(student, org, status=JoinRequestStatus.REJECTED)

        reopened = service.create_request(student.id, org.id)

        assert reopened.id == previous.id
        assert reopened.status == JoinRequestStatus.PENDING


class TestProcessRequest:

    def test_owner_approves(self, db_session, service, now, make_user, make_organization, make_join_request):
        org = make_organization()
        student = make_user()
        join_request = make_join_request(student, org)

        approved = service.process(join_request.id, org.owner_id, "approve")

        assert approved.status == JoinRequestStatus.APPROVED
        db_session.expire_all()
        assert db_session.get(User, student.id).organization_id == org.id

    def test_approved_member_gets_assignment_access(
        self, db_session, service, now, make_user, make_organization, make_join_request, make_assignment
    ):
        org = make_organization()
        student = make_user()
        join_request = make_join_request(student, org)
        assignment = make_assignment(org)

        service.approve(join_request.id, org.owner_id)

        db_session.expire_all()
        decision = resolve_access(db_session, student.id, AccessContext(assignment_id=assignment.id), now=now)
        assert decision.allowed

    def test_approved_member_inherits_org_plan_status(
        self, db_session, service, now, make_user, make_plan, make_organization, make_subscription,
        make_join_request,
    ):
        org = make_organization()
        make_subscription(make_plan(name="School", price=50000, plan_type=PlanType.ORGANIZATION), organization=org)
        student = make_user()
        join_request = make_join_request(student, org)

        service.approve(join_request.id, org.owner_id)

        db_session.expire_all()
        status = get_status(db_session, student.id, now=now)
        assert status.is_org_member
        assert not status.missing_subscription
        assert not status.needs_payment

    def test_non_owner_cannot_approve(self, service, make_user, make_organization, make_join_request):
        org = make_organization()
        join_request = make_join_request(make_user(), org)
        someone_else = make_user()

        with pytest.raises(NotOrganizationOwnerError):
            service.approve(join_request.id, someone_else.id)

    def test_other_owner_cannot_approve(self, service, make_user, make_organization, make_join_request):
        org = make_organization(name="Mine")
        other_org = make_organization(name="Theirs")
        join_request = make_join_request(make_user(), org)

        with pytest.raises(JoinRequestNotFoundError):
            service.approve(join_request.id, other_org.owner_id)

    def test_reject(self, db_session, service, make_user, make_organization, make_join_request):
        org = make_organization()
        student = make_user()
        join_request = make_join_request(student, org)

        rejected = service.process(join_request.id, org.owner_id, "reject")

        assert rejected.status == JoinRequestStatus.REJECTED
        db_session.expire_all()
        assert db_session.get(User, student.id).organization_id is None

    def test_cannot_process_twice(self, service, make_user, make_organization, make_join_request):
        org = make_organization()
        join_request = make_join_request(make_user(), org)
        service.reject(join_request.id, org.owner_id)

        with pytest.raises(InvalidJoinRequestStateError):
            service.approve(join_request.id, org.owner_id)

    def test_invalid_action(self, service, make_user, make_organization, make_join_request):
        org = make_organization()
        join_request = make_join_request(make_user(), org)

        with pytest.raises(ValueError):
            service.process(join_request.id, org.owner_id, "ignore")

    def test_list_pending(self, service, make_user, make_organization, make_join_request):
        org = make_organization()
        pending = make_join_request(make_user(name="A"), org)
        make_join_request(make_user(name="B"), org, status=JoinRequestStatus.REJECTED)

        requests = service.list_pending(org.owner_id)

        assert [r.id for r in requests] == [pending.id]

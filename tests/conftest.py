"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database built from the model
metadata. Factory fixtures commit what they create so that later loads see a
clean identity map.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import examprep.models  # noqa: F401  registers every table
from examprep.db_base import Base
from examprep.models.assignment import Assignment
from examprep.models.catalog import Exam, ExamPaper, Subject
from examprep.models.join_request import JoinRequest, JoinRequestStatus
from examprep.models.order import Order, OrderStatus
from examprep.models.organization import Organization
from examprep.models.plan import Plan, PlanInterval, PlanType
from examprep.models.subscription import Subscription
from examprep.models.user import User, UserRole
from examprep.monitoring.entitlement_alerts import reset_deny_counts

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

_UNSET = object()


# ============================================================================
# DATABASE
# ============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (needed by TestClient)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def now():
    return NOW


@pytest.fixture(autouse=True)
def clear_deny_counts():
    """Deny alert counters are process-global."""
    reset_deny_counts()
    yield
    reset_deny_counts()


# ============================================================================
# FACTORIES
# ============================================================================

@pytest.fixture
def make_user(db_session):
    def _make(role=UserRole.STUDENT, email=None, name=None, organization=None):
        user = User(
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            name=name,
            role=role,
            organization_id=organization.id if organization is not None else None,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def make_plan(db_session):
    def _make(
        name="Basic",
        price=0,
        interval=PlanInterval.MONTHLY,
        plan_type=PlanType.STUDENT,
        features=None,
    ):
        plan = Plan(
            name=name,
            price=price,
            interval=interval,
            type=plan_type,
            features=features,
            is_active=True,
        )
        db_session.add(plan)
        db_session.commit()
        return plan
    return _make


@pytest.fixture
def make_organization(db_session, make_user):
    def _make(name="Bright Minds Academy", owner=None):
        owner = owner or make_user(role=UserRole.ORGANIZATION, name="Ada Owner")
        organization = Organization(name=name, owner_id=owner.id)
        db_session.add(organization)
        db_session.commit()
        return organization
    return _make


@pytest.fixture
def make_subscription(db_session):
    def _make(
        plan,
        user=None,
        organization=None,
        is_active=True,
        start_date=None,
        end_date=_UNSET,
    ):
        if end_date is _UNSET:
            end_date = NOW + timedelta(days=30)
        subscription = Subscription(
            plan_id=plan.id,
            user_id=user.id if user is not None else None,
            organization_id=organization.id if organization is not None else None,
            is_active=is_active,
            start_date=start_date or NOW - timedelta(days=1),
            end_date=end_date,
        )
        db_session.add(subscription)
        db_session.commit()
        return subscription
    return _make


@pytest.fixture
def make_exam(db_session):
    def _make(name="WAEC"):
        exam = Exam(name=name)
        db_session.add(exam)
        db_session.commit()
        return exam
    return _make


@pytest.fixture
def make_subject(db_session):
    def _make(name="Mathematics"):
        subject = Subject(name=name)
        db_session.add(subject)
        db_session.commit()
        return subject
    return _make


@pytest.fixture
def make_paper(db_session):
    def _make(exam, subject, year=2021, organization=None, title=None):
        paper = ExamPaper(
            title=title or f"{exam.name} {subject.name} {year}",
            exam_id=exam.id,
            subject_id=subject.id,
            year=year,
            organization_id=organization.id if organization is not None else None,
        )
        db_session.add(paper)
        db_session.commit()
        return paper
    return _make


@pytest.fixture
def make_assignment(db_session, make_exam, make_subject, make_paper):
    def _make(organization, start_time=None, end_time=None, paper=None):
        if paper is None:
            paper = make_paper(
                make_exam(f"Exam {uuid.uuid4().hex[:6]}"),
                make_subject(f"Subject {uuid.uuid4().hex[:6]}"),
                organization=organization,
            )
        assignment = Assignment(
            title="Mock exam",
            paper_id=paper.id,
            organization_id=organization.id,
            start_time=start_time or NOW - timedelta(hours=1),
            end_time=end_time or NOW + timedelta(hours=1),
            duration_minutes=60,
        )
        db_session.add(assignment)
        db_session.commit()
        return assignment
    return _make


@pytest.fixture
def make_join_request(db_session):
    def _make(user, organization, status=JoinRequestStatus.PENDING):
        join_request = JoinRequest(user_id=user.id, organization_id=organization.id, status=status)
        db_session.add(join_request)
        db_session.commit()
        return join_request
    return _make


@pytest.fixture
def make_order(db_session):
    def _make(user, plan, status=OrderStatus.PENDING, reference=None, amount=None):
        order = Order(
            user_id=user.id,
            plan_id=plan.id,
            amount=plan.price if amount is None else amount,
            currency="NGN",
            status=status,
            reference=reference or f"PREP_{uuid.uuid4()}",
        )
        db_session.add(order)
        db_session.commit()
        return order
    return _make

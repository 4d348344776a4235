"""
Database models for users, organizations, plans, subscriptions and payments.

Importing this package registers every model with Base.metadata.
"""

from examprep.models.base import TimestampMixin, generate_uuid
from examprep.models.user import User, UserRole
from examprep.models.organization import Organization
from examprep.models.plan import Plan, PlanInterval, PlanType
from examprep.models.subscription import Subscription
from examprep.models.catalog import Exam, Subject, ExamPaper
from examprep.models.assignment import Assignment, AssignmentWindow
from examprep.models.order import Order, OrderStatus, PaymentTransaction
from examprep.models.join_request import JoinRequest, JoinRequestStatus

__all__ = [
    "TimestampMixin",
    "generate_uuid",
    "User",
    "UserRole",
    "Organization",
    "Plan",
    "PlanInterval",
    "PlanType",
    "Subscription",
    "Exam",
    "Subject",
    "ExamPaper",
    "Assignment",
    "AssignmentWindow",
    "Order",
    "OrderStatus",
    "PaymentTransaction",
    "JoinRequest",
    "JoinRequestStatus",
]

"""
Plan model.

A plan is a priced offering. Its features JSON may hold three optional
allow-lists, each independently optional:

    {
        "allowedExams": ["WAEC", "JAMB"],   # exam display names (or ids)
        "allowedSubjectIds": ["subj-1"],
        "allowedYears": ["2021", "2022"]
    }

A missing key means unrestricted; an empty list means nothing allowed.
"""

import enum

from sqlalchemy import Column, String, Integer, Boolean, Text, JSON, Enum as SAEnum
from sqlalchemy.orm import relationship

from examprep.db_base import Base
from examprep.models.base import TimestampMixin, generate_uuid


class PlanInterval(str, enum.Enum):
    """Billing interval; LIFETIME subscriptions never expire."""
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    BIANNUALLY = "BIANNUALLY"
    YEARLY = "YEARLY"
    LIFETIME = "LIFETIME"


class PlanType(str, enum.Enum):
    """Who the plan is sold to."""
    STUDENT = "STUDENT"
    ORGANIZATION = "ORGANIZATION"


class Plan(Base, TimestampMixin):
    """Purchasable tier: price, billing interval and feature restrictions."""

    __tablename__ = "plans"

    id = Column(
        String(255),
        primary_key=True,
        default=generate_uuid,
        comment="Internal UUID primary key"
    )

    name = Column(
        String(255),
        nullable=False,
        comment="Plan display name"
    )

    description = Column(
        Text,
        nullable=True,
    )

    price = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Price in major currency units (0 = free)"
    )

    interval = Column(
        SAEnum(PlanInterval, name="plan_interval", create_constraint=True),
        nullable=False,
        default=PlanInterval.MONTHLY,
        comment="Billing interval"
    )

    type = Column(
        SAEnum(PlanType, name="plan_type", create_constraint=True),
        nullable=False,
        default=PlanType.STUDENT,
        comment="Audience of the plan"
    )

    features = Column(
        JSON,
        nullable=True,
        comment="Optional allow-lists: allowedExams, allowedSubjectIds, allowedYears"
    )

    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the plan is offered publicly"
    )

    subscriptions = relationship("Subscription", back_populates="plan")

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, name={self.name}, price={self.price}, interval={self.interval})>"

    @property
    def is_free(self) -> bool:
        return (self.price or 0) <= 0

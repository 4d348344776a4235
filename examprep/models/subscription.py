"""
Subscription model.

Binds one Plan to exactly one User or exactly one Organization (never both,
never neither). end_date is None for lifetime grants.

Lifecycle:
1. Created at onboarding (is_active only for free plans)
2. Updated by payment fulfillment: is_active=True, start_date reset,
   end_date extended by one plan interval
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from examprep.db_base import Base
from examprep.models.base import TimestampMixin, generate_uuid
from examprep.utils.time import as_utc, utcnow


class Subscription(Base, TimestampMixin):
    """Personal or organization subscription to a plan."""

    __tablename__ = "subscriptions"

    id = Column(
        String(255),
        primary_key=True,
        default=generate_uuid,
        comment="Internal UUID primary key"
    )

    plan_id = Column(
        String(255),
        ForeignKey("plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
        comment="Owning user (personal subscription)"
    )

    organization_id = Column(
        String(255),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
        comment="Owning organization (inherited by members)"
    )

    start_date = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    end_date = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="Expiry; NULL means never expires"
    )

    is_active = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Set at creation for free plans and on successful payment"
    )

    # Relationships
    plan = relationship("Plan", back_populates="subscriptions")
    user = relationship("User", back_populates="subscription")
    organization = relationship("Organization", back_populates="subscription")

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (organization_id IS NULL)",
            name="ck_subscriptions_single_owner",
        ),
    )

    def __repr__(self) -> str:
        owner = f"user_id={self.user_id}" if self.user_id else f"organization_id={self.organization_id}"
        return f"<Subscription(id={self.id}, {owner}, plan_id={self.plan_id}, is_active={self.is_active})>"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True when end_date has been reached (end_date == now counts as expired)."""
        if self.end_date is None:
            return False
        return as_utc(self.end_date) <= as_utc(now or utcnow())

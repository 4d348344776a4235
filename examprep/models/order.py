"""
Order and PaymentTransaction models.

An Order is created when a user starts paying for a plan and carries the
reference the payment provider echoes back. Fulfillment flips it to
SUCCESSFUL exactly once and records one PaymentTransaction.
"""

import enum

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.orm import relationship

from examprep.db_base import Base
from examprep.models.base import TimestampMixin, generate_uuid
from examprep.utils.time import utcnow


class OrderStatus(str, enum.Enum):
    """Order lifecycle status."""
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"


class Order(Base, TimestampMixin):
    """Payment attempt for a plan."""

    __tablename__ = "orders"

    id = Column(
        String(255),
        primary_key=True,
        default=generate_uuid,
        comment="Internal UUID primary key"
    )

    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Paying user (owner for organization plans)"
    )

    plan_id = Column(
        String(255),
        ForeignKey("plans.id", ondelete="CASCADE"),
        nullable=False,
    )

    amount = Column(
        Integer,
        nullable=False,
        comment="Amount in major currency units"
    )

    currency = Column(String(8), nullable=False, default="NGN")

    status = Column(
        SAEnum(OrderStatus, name="order_status", create_constraint=True),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )

    reference = Column(
        String(255),
        nullable=False,
        unique=True,
        comment="Idempotency key shared with the payment provider"
    )

    # Relationships
    user = relationship("User", back_populates="orders")
    plan = relationship("Plan")
    transaction = relationship("PaymentTransaction", back_populates="order", uselist=False)

    __table_args__ = (
        Index("ix_orders_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, reference={self.reference}, status={self.status})>"


class PaymentTransaction(Base):
    """Provider-confirmed payment; at most one per order."""

    __tablename__ = "payment_transactions"

    id = Column(String(255), primary_key=True, default=generate_uuid)

    order_id = Column(
        String(255),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        comment="Unique so a duplicate fulfillment cannot insert twice"
    )

    amount = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False, default="NGN")
    status = Column(String(50), nullable=False, default="success")
    provider = Column(String(50), nullable=False, default="PAYSTACK")
    provider_ref = Column(String(255), nullable=True, comment="Provider's internal transaction id")
    payment_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    order = relationship("Order", back_populates="transaction")

    def __repr__(self) -> str:
        return f"<PaymentTransaction(id={self.id}, order_id={self.order_id}, provider_ref={self.provider_ref})>"

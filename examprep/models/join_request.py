"""
JoinRequest model.

A student asks to join an organization; the owner approves or rejects. While a
request is PENDING the student is in a waiting state rather than a "must pay"
state.
"""

import enum

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship

from examprep.db_base import Base
from examprep.models.base import TimestampMixin, generate_uuid


class JoinRequestStatus(str, enum.Enum):
    """Join request lifecycle status."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class JoinRequest(Base, TimestampMixin):
    """Request from a user to join an organization."""

    __tablename__ = "join_requests"

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
    )

    organization_id = Column(
        String(255),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status = Column(
        SAEnum(JoinRequestStatus, name="join_request_status", create_constraint=True),
        nullable=False,
        default=JoinRequestStatus.PENDING,
        index=True,
    )

    user = relationship("User")
    organization = relationship("Organization")

    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_join_requests_user_org"),
    )

    def __repr__(self) -> str:
        return (
            f"<JoinRequest(id={self.id}, user_id={self.user_id}, "
            f"organization_id={self.organization_id}, status={self.status})>"
        )

    @property
    def is_pending(self) -> bool:
        return self.status == JoinRequestStatus.PENDING

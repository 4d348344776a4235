"""
User model.

A user reaches entitlements through exactly one of two paths:
- membership in an Organization (organization_id), inheriting its subscription
- a personal Subscription

Organization owners are linked through Organization.owner_id, not through
organization_id.
"""

import enum
from typing import TYPE_CHECKING

from sqlalchemy import Column, String, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship

from examprep.db_base import Base
from examprep.models.base import TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from examprep.models.organization import Organization
    from examprep.models.subscription import Subscription


class UserRole(str, enum.Enum):
    """Platform role chosen at onboarding."""
    STUDENT = "STUDENT"
    ORGANIZATION = "ORGANIZATION"
    ADMIN = "ADMIN"


class User(Base, TimestampMixin):
    """Platform user (student, organization owner or admin)."""

    __tablename__ = "users"

    id = Column(
        String(255),
        primary_key=True,
        default=generate_uuid,
        comment="Internal UUID primary key"
    )

    email = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email address"
    )

    name = Column(
        String(255),
        nullable=True,
        comment="Display name"
    )

    # Null until the user completes onboarding
    role = Column(
        SAEnum(UserRole, name="user_role", create_constraint=True),
        nullable=True,
        comment="Platform role"
    )

    organization_id = Column(
        String(255),
        ForeignKey("organizations.id", ondelete="SET NULL", use_alter=True, name="fk_users_organization_id"),
        nullable=True,
        index=True,
        comment="Organization this user is a member of"
    )

    # Relationships
    organization = relationship(
        "Organization",
        foreign_keys=[organization_id],
        back_populates="members",
    )
    owned_organization = relationship(
        "Organization",
        foreign_keys="Organization.owner_id",
        back_populates="owner",
        uselist=False,
    )
    subscription = relationship(
        "Subscription",
        back_populates="user",
        uselist=False,
    )
    orders = relationship("Order", back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @property
    def is_org_member(self) -> bool:
        """True when the user belongs to an organization as a member."""
        return self.organization_id is not None

"""
Organization model.

An organization has exactly one owner (the administrator members are told to
contact), zero or one subscription, and many member users.
"""

from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship

from examprep.db_base import Base
from examprep.models.base import TimestampMixin, generate_uuid


class Organization(Base, TimestampMixin):
    """School or tutoring organization that buys seats for its members."""

    __tablename__ = "organizations"

    id = Column(
        String(255),
        primary_key=True,
        default=generate_uuid,
        comment="Internal UUID primary key"
    )

    name = Column(
        String(255),
        nullable=False,
        comment="Organization display name"
    )

    owner_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
        comment="User who owns (administers) this organization"
    )

    # Relationships
    owner = relationship(
        "User",
        foreign_keys=[owner_id],
        back_populates="owned_organization",
    )
    members = relationship(
        "User",
        foreign_keys="User.organization_id",
        back_populates="organization",
    )
    subscription = relationship(
        "Subscription",
        back_populates="organization",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name}, owner_id={self.owner_id})>"

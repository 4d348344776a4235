"""
Assignment model.

An organization-issued, time-boxed grant to take one paper. Access through an
assignment is independent of any subscription. The window status is derived
from start_time/end_time and never stored.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from examprep.db_base import Base
from examprep.models.base import TimestampMixin, generate_uuid
from examprep.utils.time import as_utc, utcnow


class AssignmentWindow(str, enum.Enum):
    """Derived window state."""
    UPCOMING = "upcoming"   # now < start_time
    OPEN = "open"           # start_time <= now <= end_time
    CLOSED = "closed"       # now > end_time


class Assignment(Base, TimestampMixin):
    """Time-boxed paper assignment issued by an organization."""

    __tablename__ = "assignments"

    id = Column(
        String(255),
        primary_key=True,
        default=generate_uuid,
        comment="Internal UUID primary key"
    )

    title = Column(String(255), nullable=False)

    paper_id = Column(
        String(255),
        ForeignKey("exam_papers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    organization_id = Column(
        String(255),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Issuing organization; only its members may take the assignment"
    )

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)

    duration_minutes = Column(
        Integer,
        nullable=True,
        comment="Optional time limit for a single attempt"
    )

    paper = relationship("ExamPaper")
    organization = relationship("Organization")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_assignments_window_order"),
        Index("ix_assignments_org_start", "organization_id", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Assignment(id={self.id}, organization_id={self.organization_id}, "
            f"start_time={self.start_time}, end_time={self.end_time})>"
        )

    def window_state(self, now: Optional[datetime] = None) -> AssignmentWindow:
        """Window state at `now`; both window bounds are inclusive."""
        current = as_utc(now or utcnow())
        if current < as_utc(self.start_time):
            return AssignmentWindow.UPCOMING
        if current > as_utc(self.end_time):
            return AssignmentWindow.CLOSED
        return AssignmentWindow.OPEN

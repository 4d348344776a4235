"""
Catalog models: exams, subjects and papers.

Only the columns the access layer and catalog listings read are modelled;
question authoring lives elsewhere.
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship

from examprep.db_base import Base
from examprep.models.base import TimestampMixin, generate_uuid


class Exam(Base, TimestampMixin):
    """Examination body/product, e.g. WAEC or JAMB."""

    __tablename__ = "exams"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    name = Column(
        String(255),
        nullable=False,
        unique=True,
        comment="Display name; plan allowedExams lists refer to this"
    )

    papers = relationship("ExamPaper", back_populates="exam")

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, name={self.name})>"


class Subject(Base, TimestampMixin):
    """Subject taught across exams."""

    __tablename__ = "subjects"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, unique=True)

    papers = relationship("ExamPaper", back_populates="subject")

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name={self.name})>"


class ExamPaper(Base, TimestampMixin):
    """
    A paper for one exam, subject and year.

    organization_id is set for papers authored by an organization; those are
    the papers assignments point at.
    """

    __tablename__ = "exam_papers"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)

    exam_id = Column(
        String(255),
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id = Column(
        String(255),
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year = Column(Integer, nullable=True)

    organization_id = Column(
        String(255),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        comment="Authoring organization (NULL for platform papers)"
    )

    exam = relationship("Exam", back_populates="papers")
    subject = relationship("Subject", back_populates="papers")

    __table_args__ = (
        Index("ix_exam_papers_exam_subject_year", "exam_id", "subject_id", "year"),
    )

    def __repr__(self) -> str:
        return f"<ExamPaper(id={self.id}, exam_id={self.exam_id}, subject_id={self.subject_id}, year={self.year})>"

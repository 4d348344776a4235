"""
Catalog listings narrowed by the caller's plan filters.

Every listing short-circuits to an empty result when the relevant filter
allows nothing, without querying.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from examprep.entitlements.filters import apply_restriction, year_restriction
from examprep.entitlements.models import PlanFilters
from examprep.models.catalog import Exam, ExamPaper, Subject

logger = logging.getLogger(__name__)


def _exam_visible(db: Session, filters: PlanFilters, exam_id: str) -> bool:
    if filters.allowed_exam_ids.is_unrestricted:
        return True
    exam = db.get(Exam, exam_id)
    return exam is not None and filters.allowed_exam_ids.allows(exam.name, exam.id)


def list_exams(db: Session, filters: PlanFilters) -> List[Exam]:
    # allowedExams entries may be display names or ids
    query = apply_restriction(db.query(Exam), filters.allowed_exam_ids, Exam.id, Exam.name)
    if query is None:
        return []
    return query.order_by(Exam.name.asc()).all()


def list_subjects(db: Session, filters: PlanFilters, exam_id: Optional[str] = None) -> List[Subject]:
    """Subjects, optionally only those with papers for exam_id."""
    query = apply_restriction(db.query(Subject), filters.allowed_subject_ids, Subject.id)
    if query is None:
        return []

    if exam_id is not None:
        if not _exam_visible(db, filters, exam_id):
            return []
        query = (
            query.join(ExamPaper, ExamPaper.subject_id == Subject.id)
            .filter(ExamPaper.exam_id == exam_id)
            .distinct()
        )

    return query.order_by(Subject.name.asc()).all()


def list_years(db: Session, filters: PlanFilters, exam_id: str, subject_id: str) -> List[int]:
    """Distinct paper years for an exam and subject, newest first."""
    if not _exam_visible(db, filters, exam_id):
        return []
    if not filters.allowed_subject_ids.allows(subject_id):
        return []

    query = apply_restriction(
        db.query(ExamPaper.year).filter(
            ExamPaper.exam_id == exam_id,
            ExamPaper.subject_id == subject_id,
            ExamPaper.year.isnot(None),
        ),
        year_restriction(filters.allowed_years),
        ExamPaper.year,
    )
    if query is None:
        return []

    rows = query.distinct().order_by(ExamPaper.year.desc()).all()
    return [row[0] for row in rows]

"""
Catalog listings filtered by the caller's active plan.

Users without an active plan see empty listings.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from examprep.api.dependencies import get_db_session, require_user_id
from examprep.api.errors import to_app_error
from examprep.catalog import list_exams, list_subjects, list_years
from examprep.entitlements import EntitlementEvaluationError, PlanFilters, get_plan_filters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


class CatalogItem(BaseModel):
    id: str
    name: str


def _filters_for(db: Session, user_id: str) -> PlanFilters:
    try:
        return get_plan_filters(db, user_id)
    except EntitlementEvaluationError as e:
        raise to_app_error(e) from e


@router.get("/filters")
def plan_filters(
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
) -> dict:
    """Raw allow-lists: absent key = unrestricted, [] = nothing allowed."""
    return _filters_for(db, user_id).to_dict()


@router.get("/exams", response_model=List[CatalogItem])
def exams(
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
):
    filters = _filters_for(db, user_id)
    return [CatalogItem(id=e.id, name=e.name) for e in list_exams(db, filters)]


@router.get("/subjects", response_model=List[CatalogItem])
def subjects(
    exam_id: Optional[str] = Query(None, alias="examId"),
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
):
    filters = _filters_for(db, user_id)
    return [CatalogItem(id=s.id, name=s.name) for s in list_subjects(db, filters, exam_id)]


@router.get("/years", response_model=List[int])
def years(
    exam_id: str = Query(..., alias="examId"),
    subject_id: str = Query(..., alias="subjectId"),
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
):
    filters = _filters_for(db, user_id)
    return list_years(db, filters, exam_id, subject_id)

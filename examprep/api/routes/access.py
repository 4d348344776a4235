"""
Access check endpoint.

Called before graded actions (starting a quiz, opening an assignment).
Denials are normal answers: 200 with allowed=false and a user-facing reason.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from examprep.api.dependencies import get_db_session, require_user_id
from examprep.entitlements import AccessContext, resolve_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/access", tags=["access"])


class AccessCheckRequest(BaseModel):
    """Resource being opened. All fields optional."""
    model_config = ConfigDict(populate_by_name=True)

    assignment_id: Optional[str] = Field(None, alias="assignmentId")
    exam_id: Optional[str] = Field(None, alias="examId")
    subject_id: Optional[str] = Field(None, alias="subjectId")
    year: Optional[int] = None


class AccessCheckResponse(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    source: str
    planId: Optional[str] = None
    errorCode: Optional[str] = None


@router.post("/check", response_model=AccessCheckResponse)
def check_access(
    body: AccessCheckRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
):
    context = AccessContext(
        assignment_id=body.assignment_id,
        exam_id=body.exam_id,
        subject_id=body.subject_id,
        year=body.year,
    )
    decision = resolve_access(db, user_id, context)
    return AccessCheckResponse(**decision.to_dict())

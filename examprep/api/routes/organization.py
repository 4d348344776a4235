"""Organization join request endpoints."""

import logging
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from examprep.api.dependencies import get_db_session, require_user_id
from examprep.api.errors import to_app_error
from examprep.models.join_request import JoinRequest
from examprep.organizations import JoinRequestError, JoinRequestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/organization", tags=["organization"])


class CreateJoinRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    organization_id: str = Field(..., alias="organizationId")


class JoinRequestAction(BaseModel):
    action: Literal["approve", "reject"]


class JoinRequestResponse(BaseModel):
    id: str
    userId: str
    organizationId: str
    status: str
    userName: Optional[str] = None
    userEmail: Optional[str] = None
    createdAt: Optional[datetime] = None


def _to_response(join_request: JoinRequest, include_user: bool = False) -> JoinRequestResponse:
    user = join_request.user if include_user else None
    return JoinRequestResponse(
        id=join_request.id,
        userId=join_request.user_id,
        organizationId=join_request.organization_id,
        status=join_request.status.value,
        userName=user.name if user else None,
        userEmail=user.email if user else None,
        createdAt=join_request.created_at,
    )


@router.post("/join-requests", response_model=JoinRequestResponse, status_code=status.HTTP_201_CREATED)
def create_join_request(
    body: CreateJoinRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
):
    try:
        join_request = JoinRequestService(db).create_request(user_id, body.organization_id)
    except JoinRequestError as e:
        raise to_app_error(e) from e
    return _to_response(join_request)


@router.get("/join-requests", response_model=List[JoinRequestResponse])
def list_join_requests(
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
):
    """Pending requests for the caller's organization (owner only)."""
    try:
        requests = JoinRequestService(db).list_pending(user_id)
    except JoinRequestError as e:
        raise to_app_error(e) from e
    return [_to_response(r, include_user=True) for r in requests]


@router.post("/join-requests/{request_id}", response_model=JoinRequestResponse)
def process_join_request(
    request_id: str,
    body: JoinRequestAction,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
):
    try:
        join_request = JoinRequestService(db).process(request_id, user_id, body.action)
    except JoinRequestError as e:
        raise to_app_error(e) from e
    return _to_response(join_request)

"""Onboarding endpoint: pick a role and a plan."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from examprep.api.dependencies import get_db_session, require_user_id
from examprep.api.errors import to_app_error
from examprep.billing import OnboardingError, OnboardingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])


class OnboardingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: str = Field(..., description="STUDENT or ORGANIZATION")
    plan_id: str = Field(..., alias="planId")
    org_name: Optional[str] = Field(None, alias="orgName")


@router.post("")
def onboard(
    body: OnboardingRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
) -> dict:
    """
    Set role, create the organization (ORGANIZATION role) and the subscription
    in one transaction. requiresPayment tells the client to start checkout.
    """
    try:
        result = OnboardingService(db).onboard_user(
            user_id=user_id,
            role=body.role,
            plan_id=body.plan_id,
            org_name=body.org_name,
        )
    except OnboardingError as e:
        raise to_app_error(e) from e

    return result.to_dict()

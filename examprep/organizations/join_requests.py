"""
JoinRequestService: students asking to join an organization.

Handles:
- Creating a request (idempotent while pending)
- Listing pending requests for the organization owner
- Approving (owner only; membership and request status change together)
- Rejecting
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from examprep.entitlements.plan_resolver import get_owned_organization
from examprep.models.join_request import JoinRequest, JoinRequestStatus
from examprep.models.organization import Organization
from examprep.models.user import User

logger = logging.getLogger(__name__)

APPROVE_ACTION = "approve"
REJECT_ACTION = "reject"


# =============================================================================
# Exceptions
# =============================================================================

class JoinRequestError(Exception):
    """Base exception for join request errors."""
    pass


class JoinRequestUserNotFoundError(JoinRequestError):
    """Raised when the requesting user does not exist."""
    pass


class OrganizationNotFoundError(JoinRequestError):
    """Raised when the organization does not exist."""
    pass


class NotOrganizationOwnerError(JoinRequestError):
    """Raised when someone other than the owner tries to act on requests."""
    pass


class AlreadyMemberError(JoinRequestError):
    """Raised when the user already belongs to an organization."""
    pass


class JoinRequestNotFoundError(JoinRequestError):
    """Raised when the request does not exist in the owner's organization."""
    pass


class InvalidJoinRequestStateError(JoinRequestError):
    """Raised when the request has already been processed."""
    pass


# =============================================================================
# Service
# =============================================================================

class JoinRequestService:
    """Service for organization join requests."""

    def __init__(self, session: Session):
        self.session = session

    def create_request(self, user_id: str, organization_id: str) -> JoinRequest:
        """
        Ask to join an organization.

        A second call while the first request is pending returns the existing
        request. A previously rejected request is reopened.

        Raises:
            JoinRequestUserNotFoundError: If the user doesn't exist
            OrganizationNotFoundError: If the organization doesn't exist
            AlreadyMemberError: If the user already belongs to an organization
        """
        user = self.session.get(User, user_id)
        if user is None:
            raise JoinRequestUserNotFoundError(f"User {user_id} not found")
        if user.organization_id is not None:
            raise AlreadyMemberError("You are already a member of an organization.")

        organization = self.session.get(Organization, organization_id)
        if organization is None:
            raise OrganizationNotFoundError(f"Organization {organization_id} not found")
        if organization.owner_id == user_id:
            raise AlreadyMemberError("You own this organization.")

        existing = self.session.query(JoinRequest).filter(
            JoinRequest.user_id == user_id,
            JoinRequest.organization_id == organization_id,
        ).first()

        if existing is not None:
            if existing.is_pending:
                logger.info("Join request already pending", extra={"join_request_id": existing.id})
                return existing
            existing.status = JoinRequestStatus.PENDING
            self.session.commit()
            logger.info("Reopened join request", extra={"join_request_id": existing.id})
            return existing

        join_request = JoinRequest(
            user_id=user_id,
            organization_id=organization_id,
            status=JoinRequestStatus.PENDING,
        )
        self.session.add(join_request)
        self.session.commit()

        logger.info(
            "Created join request",
            extra={
                "join_request_id": join_request.id,
                "user_id": user_id,
                "organization_id": organization_id,
            }
        )
        return join_request

    def list_pending(self, owner_id: str) -> List[JoinRequest]:
        """Pending requests for the organization owned by owner_id, newest first."""
        organization = self._get_owned_organization(owner_id)
        return (
            self.session.query(JoinRequest)
            .options(joinedload(JoinRequest.user))
            .filter(
                JoinRequest.organization_id == organization.id,
                JoinRequest.status == JoinRequestStatus.PENDING,
            )
            .order_by(JoinRequest.created_at.desc())
            .all()
        )

    def process(self, request_id: str, owner_id: str, action: str) -> JoinRequest:
        """Approve or reject a request on behalf of the organization owner."""
        if action == APPROVE_ACTION:
            return self.approve(request_id, owner_id)
        if action == REJECT_ACTION:
            return self.reject(request_id, owner_id)
        raise ValueError(f"Invalid action: {action}")

    def approve(self, request_id: str, owner_id: str) -> JoinRequest:
        """
        Add the requester to the owner's organization and close the request.

        Raises:
            NotOrganizationOwnerError: If owner_id owns no organization
            JoinRequestNotFoundError: If the request isn't for that organization
            InvalidJoinRequestStateError: If the request isn't pending
            AlreadyMemberError: If the requester joined another organization meanwhile
        """
        organization = self._get_owned_organization(owner_id)
        join_request = self._get_pending_request(request_id, organization.id)

        user = self.session.get(User, join_request.user_id)
        if user.organization_id is not None and user.organization_id != organization.id:
            raise AlreadyMemberError("User already belongs to another organization.")

        try:
            user.organization_id = organization.id
            join_request.status = JoinRequestStatus.APPROVED
            self.session.flush()
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("Join request approval failed", extra={"join_request_id": request_id})
            raise

        logger.info(
            "Approved join request",
            extra={
                "join_request_id": request_id,
                "user_id": join_request.user_id,
                "organization_id": organization.id,
            }
        )
        return join_request

    def reject(self, request_id: str, owner_id: str) -> JoinRequest:
        organization = self._get_owned_organization(owner_id)
        join_request = self._get_pending_request(request_id, organization.id)

        join_request.status = JoinRequestStatus.REJECTED
        self.session.commit()

        logger.info(
            "Rejected join request",
            extra={"join_request_id": request_id, "organization_id": organization.id},
        )
        return join_request

    def _get_owned_organization(self, owner_id: str) -> Organization:
        organization = get_owned_organization(self.session, owner_id)
        if organization is None:
            raise NotOrganizationOwnerError("Only the organization owner can manage join requests.")
        return organization

    def _get_pending_request(self, request_id: str, organization_id: str) -> JoinRequest:
        join_request: Optional[JoinRequest] = (
            self.session.query(JoinRequest)
            .filter(JoinRequest.id == request_id)
            .with_for_update()
            .first()
        )
        if join_request is None or join_request.organization_id != organization_id:
            raise JoinRequestNotFoundError(f"Join request {request_id} not found")
        if not join_request.is_pending:
            raise InvalidJoinRequestStateError(
                f"Join request already {join_request.status.value.lower()}"
            )
        return join_request

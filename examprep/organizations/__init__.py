"""Organization membership: join requests."""

from examprep.organizations.join_requests import (
    APPROVE_ACTION,
    REJECT_ACTION,
    AlreadyMemberError,
    InvalidJoinRequestStateError,
    JoinRequestError,
    JoinRequestNotFoundError,
    JoinRequestService,
    JoinRequestUserNotFoundError,
    NotOrganizationOwnerError,
    OrganizationNotFoundError,
)

__all__ = [
    "APPROVE_ACTION",
    "REJECT_ACTION",
    "AlreadyMemberError",
    "InvalidJoinRequestStateError",
    "JoinRequestError",
    "JoinRequestNotFoundError",
    "JoinRequestService",
    "JoinRequestUserNotFoundError",
    "NotOrganizationOwnerError",
    "OrganizationNotFoundError",
]

"""
Request dependencies: database session and the caller's user id.

Authentication happens upstream; the gateway forwards the authenticated
user's id in the X-User-Id header.
"""

from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from examprep.database.session import get_db_session_sync
from examprep.platform.errors import AuthenticationError

USER_ID_HEADER = "X-User-Id"


def get_db_session() -> Generator[Session, None, None]:
    """Per-request session; overridden in tests."""
    yield from get_db_session_sync()


def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
) -> Optional[str]:
    """The caller's user id, or None for anonymous requests."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def require_user_id(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    if not user_id:
        raise AuthenticationError()
    return user_id

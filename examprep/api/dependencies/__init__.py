from examprep.api.dependencies.session import (
    USER_ID_HEADER,
    get_current_user_id,
    get_db_session,
    require_user_id,
)

__all__ = [
    "USER_ID_HEADER",
    "get_current_user_id",
    "get_db_session",
    "require_user_id",
]

from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from app.services.errors import FriendsError

FRIENDS_ERROR_STATUSES: dict[str, int] = {
    "validation_error": 400,
    "invalid_credentials": 400,
    "cannot_friend_self": 400,
    "already_friends": 400,
    "request_already_pending": 400,
    "user_not_found": 404,
    "request_not_found": 404,
    "request_not_pending": 409,
}


def friends_error(exc: FriendsError) -> HTTPException:
    return HTTPException(
        status_code=FRIENDS_ERROR_STATUSES.get(exc.code, 400),
        detail=exc.detail,
    )


def value_error(
    exc: ValueError,
    *,
    default_status: int = 400,
    default_detail: str | None = None,
) -> HTTPException:
    if isinstance(exc, FriendsError):
        return friends_error(exc)

    return HTTPException(
        status_code=default_status,
        detail=default_detail if default_detail is not None else str(exc),
    )


def store_error_detail(exc: SQLAlchemyError) -> str:
    # DBAPI errors wrap the driver exception; its message is what callers want to see.
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)

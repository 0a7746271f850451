"""Failure kinds raised by the friends services.

Each kind is a ``ValueError`` whose ``str()`` is a stable code, so the HTTP
layer can map it to a status with ``app.api.http_errors.value_error``.
"""
from __future__ import annotations


class FriendsError(ValueError):
    code = "friends_error"
    detail = "Request could not be completed"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(self.code)
        if detail is not None:
            self.detail = detail


class ValidationError(FriendsError):
    code = "validation_error"
    detail = "Required fields are missing"


class InvalidCredentials(FriendsError):
    code = "invalid_credentials"
    detail = "Invalid password"


class UserNotFound(FriendsError):
    code = "user_not_found"
    detail = "User not found"


class SelfFriendError(FriendsError):
    code = "cannot_friend_self"
    detail = "You cannot add yourself"


class AlreadyFriends(FriendsError):
    code = "already_friends"
    detail = "Already friends"


class RequestAlreadyPending(FriendsError):
    code = "request_already_pending"
    detail = "A friend request between these users is already pending"


class NotFound(FriendsError):
    code = "request_not_found"
    detail = "Friend request not found"


class RequestNotPending(FriendsError):
    code = "request_not_pending"
    detail = "Friend request is no longer pending"

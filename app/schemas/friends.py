from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FriendListItem(BaseModel):
    friendship_id: UUID
    id: UUID
    username: str
    profile_image: str | None = None


class FriendsResponse(BaseModel):
    friends: List[FriendListItem]


class SharedImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    friendship_id: UUID
    sender_id: UUID
    image_url: str
    created_at: datetime


class SharedImagesResponse(BaseModel):
    images: List[SharedImageOut]


class AddFriendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender_id: UUID = Field(alias="senderId")
    friend_code: str | None = Field(default=None, alias="friendCode", max_length=32)


class FriendRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender_id: UUID
    receiver_id: UUID
    status: str
    created_at: datetime
    responded_at: datetime | None = None


class FriendRequestActionResponse(BaseModel):
    message: str
    request: FriendRequestOut


class ReceivedRequestsResponse(BaseModel):
    requests: List[FriendRequestOut]


class SentRequestsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sent_requests: List[FriendRequestOut] = Field(alias="sentRequests")

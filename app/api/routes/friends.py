from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.http_errors import value_error
from app.models.friend_request import FriendRequestStatus
from app.schemas.friends import (
    AddFriendRequest,
    FriendListItem,
    FriendRequestActionResponse,
    FriendRequestOut,
    FriendsResponse,
    ReceivedRequestsResponse,
    SentRequestsResponse,
    SharedImageOut,
    SharedImagesResponse,
)
from app.services.friends import (
    accept_request,
    list_friends,
    list_received_requests,
    list_sent_requests,
    list_shared_images,
    reject_request,
    send_friend_request,
)

router = APIRouter(tags=["friends"])


@router.get("/friends/{user_id}", response_model=FriendsResponse)
async def get_friends(user_id: UUID, db: AsyncSession = Depends(get_db)):
    rows = await list_friends(db, user_id)
    return FriendsResponse(
        friends=[
            FriendListItem(
                friendship_id=friendship_id,
                id=friend.id,
                username=friend.username,
                profile_image=friend.profile_image,
            )
            for friendship_id, friend in rows
        ]
    )


@router.get("/shared-images/{friendship_id}", response_model=SharedImagesResponse)
async def get_shared_images(friendship_id: UUID, db: AsyncSession = Depends(get_db)):
    images = await list_shared_images(db, friendship_id)
    return SharedImagesResponse(images=[SharedImageOut.model_validate(i) for i in images])


@router.post("/add-friend", response_model=FriendRequestActionResponse)
async def add_friend(payload: AddFriendRequest, db: AsyncSession = Depends(get_db)):
    try:
        request = await send_friend_request(db, payload.sender_id, payload.friend_code)
        await db.commit()
    except ValueError as e:
        await db.rollback()
        raise value_error(e) from e

    return FriendRequestActionResponse(
        message="Friend request sent successfully",
        request=FriendRequestOut.model_validate(request),
    )


@router.get("/requests/{user_id}", response_model=ReceivedRequestsResponse)
async def get_received_requests(
    user_id: UUID,
    status: FriendRequestStatus | None = None,
    db: AsyncSession = Depends(get_db),
):
    requests = await list_received_requests(db, user_id, status)
    return ReceivedRequestsResponse(requests=[FriendRequestOut.model_validate(r) for r in requests])


@router.get("/sent-requests/{user_id}", response_model=SentRequestsResponse)
async def get_sent_requests(
    user_id: UUID,
    status: FriendRequestStatus | None = None,
    db: AsyncSession = Depends(get_db),
):
    requests = await list_sent_requests(db, user_id, status)
    return SentRequestsResponse(sent_requests=[FriendRequestOut.model_validate(r) for r in requests])


@router.post("/requests/{request_id}/accept", response_model=FriendRequestActionResponse)
async def accept_friend_request(request_id: UUID, db: AsyncSession = Depends(get_db)):
    try:
        request = await accept_request(db, request_id)
        # request update and friendship insert land together or not at all
        await db.commit()
    except ValueError as e:
        await db.rollback()
        raise value_error(e) from e

    return FriendRequestActionResponse(
        message="Friend request accepted",
        request=FriendRequestOut.model_validate(request),
    )


@router.post("/requests/{request_id}/reject", response_model=FriendRequestActionResponse)
async def reject_friend_request(request_id: UUID, db: AsyncSession = Depends(get_db)):
    try:
        request = await reject_request(db, request_id)
        await db.commit()
    except ValueError as e:
        await db.rollback()
        raise value_error(e) from e

    return FriendRequestActionResponse(
        message="Friend request rejected",
        request=FriendRequestOut.model_validate(request),
    )

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.models.friend_request import FriendRequest, FriendRequestStatus
from app.models.friendship import Friendship
from app.models.shared_image import SharedImage
from app.models.user import User
from app.services.errors import (
    AlreadyFriends,
    NotFound,
    RequestAlreadyPending,
    RequestNotPending,
    SelfFriendError,
    UserNotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _pair(a: UUID, b: UUID) -> tuple[UUID, UUID]:
    return (a, b) if a < b else (b, a)


async def _are_friends(db: AsyncSession, a: UUID, b: UUID) -> bool:
    q = select(Friendship.id).where(
        or_(
            and_(Friendship.user1_id == a, Friendship.user2_id == b),
            and_(Friendship.user1_id == b, Friendship.user2_id == a),
        )
    )
    return (await db.execute(q)).first() is not None


async def _has_pending_request(db: AsyncSession, a: UUID, b: UUID) -> bool:
    low, high = _pair(a, b)
    q = select(FriendRequest.id).where(
        FriendRequest.status == FriendRequestStatus.PENDING.value,
        FriendRequest.pair_low_id == low,
        FriendRequest.pair_high_id == high,
    )
    return (await db.execute(q)).first() is not None


async def list_friends(db: AsyncSession, user_id: UUID) -> list[tuple[UUID, User]]:
    """Return ``(friendship_id, counterpart)`` for every friendship of ``user_id``."""
    # friendship row can contain you on either side
    f = Friendship
    u = aliased(User)

    q = (
        select(f.id, u)
        .select_from(f)
        .join(
            u,
            ((f.user1_id == user_id) & (u.id == f.user2_id))
            | ((f.user2_id == user_id) & (u.id == f.user1_id)),
        )
        .order_by(u.username.asc())
    )

    rows = (await db.execute(q)).all()
    return [(friendship_id, friend) for friendship_id, friend in rows]


async def list_shared_images(db: AsyncSession, friendship_id: UUID) -> list[SharedImage]:
    q = (
        select(SharedImage)
        .where(SharedImage.friendship_id == friendship_id)
        .order_by(SharedImage.created_at.asc(), SharedImage.id.asc())
    )
    return list((await db.execute(q)).scalars().all())


async def send_friend_request(db: AsyncSession, sender_id: UUID, friend_code: str | None) -> FriendRequest:
    if not friend_code:
        raise ValidationError("Friend code is required")

    receiver = (
        await db.execute(select(User).where(User.friend_code == friend_code))
    ).scalar_one_or_none()
    if receiver is None:
        raise UserNotFound()

    if receiver.id == sender_id:
        raise SelfFriendError()

    sender = (await db.execute(select(User.id).where(User.id == sender_id))).scalar_one_or_none()
    if sender is None:
        raise UserNotFound("Sender not found")

    if await _are_friends(db, sender_id, receiver.id):
        raise AlreadyFriends()

    if await _has_pending_request(db, sender_id, receiver.id):
        raise RequestAlreadyPending()

    low, high = _pair(sender_id, receiver.id)
    request = FriendRequest(
        sender_id=sender_id,
        receiver_id=receiver.id,
        pair_low_id=low,
        pair_high_id=high,
        status=FriendRequestStatus.PENDING.value,
    )
    db.add(request)
    try:
        await db.flush()
    except IntegrityError as exc:
        # a concurrent send for the same pair won the pending-pair index
        raise RequestAlreadyPending() from exc
    await db.refresh(request)

    logger.info("Friend request %s sent from %s to %s", request.id, sender_id, receiver.id)
    return request


async def _list_requests(db: AsyncSession, column, user_id: UUID, status: FriendRequestStatus | None) -> list[FriendRequest]:
    q = select(FriendRequest).where(column == user_id)
    if status is not None:
        q = q.where(FriendRequest.status == status.value)
    q = q.order_by(FriendRequest.created_at.asc(), FriendRequest.id.asc())
    return list((await db.execute(q)).scalars().all())


async def list_received_requests(
    db: AsyncSession, user_id: UUID, status: FriendRequestStatus | None = None
) -> list[FriendRequest]:
    return await _list_requests(db, FriendRequest.receiver_id, user_id, status)


async def list_sent_requests(
    db: AsyncSession, user_id: UUID, status: FriendRequestStatus | None = None
) -> list[FriendRequest]:
    return await _list_requests(db, FriendRequest.sender_id, user_id, status)


async def _pending_request_for_update(db: AsyncSession, request_id: UUID) -> FriendRequest:
    # Lock the request row so concurrent accept/reject calls serialize
    request = (
        await db.execute(
            select(FriendRequest)
            .where(FriendRequest.id == request_id)
            .with_for_update()
        )
    ).scalar_one_or_none()

    if request is None:
        raise NotFound()

    if request.status != FriendRequestStatus.PENDING.value:
        raise RequestNotPending()

    return request


async def accept_request(db: AsyncSession, request_id: UUID) -> FriendRequest:
    """Accept a pending request and create the friendship it asks for.

    Both writes are flushed on the caller's transaction; the caller commits
    them together or rolls both back.
    """
    request = await _pending_request_for_update(db, request_id)

    request.status = FriendRequestStatus.ACCEPTED.value
    request.responded_at = _now_utc()

    # skip the insert when the pair is already friends
    if not await _are_friends(db, request.sender_id, request.receiver_id):
        user1_id, user2_id = _pair(request.sender_id, request.receiver_id)
        db.add(Friendship(user1_id=user1_id, user2_id=user2_id))
        logger.info("Friendship created between %s and %s", request.sender_id, request.receiver_id)

    await db.flush()

    logger.info("Friend request %s accepted", request.id)
    return request


async def reject_request(db: AsyncSession, request_id: UUID) -> FriendRequest:
    request = await _pending_request_for_update(db, request_id)

    request.status = FriendRequestStatus.REJECTED.value
    request.responded_at = _now_utc()
    await db.flush()

    logger.info("Friend request %s rejected", request.id)
    return request

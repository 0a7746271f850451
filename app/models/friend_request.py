from __future__ import annotations

import enum
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class FriendRequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    sender_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True)
    receiver_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True)

    # sender/receiver as an unordered (lower id, higher id) pair
    pair_low_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, nullable=False)
    pair_high_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, nullable=False)

    # pending -> accepted | rejected, both terminal
    status: Mapped[str] = mapped_column(
        sa.String(16),
        nullable=False,
        server_default=FriendRequestStatus.PENDING.value,
    )

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        sa.CheckConstraint("sender_id <> receiver_id", name="ck_friend_requests_not_self"),
        sa.CheckConstraint("pair_low_id < pair_high_id", name="ck_friend_requests_pair_order"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')",
            name="ck_friend_requests_status",
        ),
        # at most one pending request per pair, whichever side sent it
        sa.Index(
            "uq_friend_requests_pending_pair",
            "pair_low_id",
            "pair_high_id",
            unique=True,
            postgresql_where=sa.text("status = 'pending'"),
            sqlite_where=sa.text("status = 'pending'"),
        ),
    )

"""create users, friend requests, friendships and shared images

Revision ID: 5a1c0e7d2b94
Revises:
Create Date: 2026-10-19 10:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5a1c0e7d2b94"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("profile_image", sa.String(length=500), nullable=True),
        sa.Column("friend_code", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_friend_code", "users", ["friend_code"], unique=True)

    op.create_table(
        "friend_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("receiver_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("pair_low_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("pair_high_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=16), server_default="pending", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("sender_id <> receiver_id", name="ck_friend_requests_not_self"),
        sa.CheckConstraint("pair_low_id < pair_high_id", name="ck_friend_requests_pair_order"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')",
            name="ck_friend_requests_status",
        ),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_friend_requests_sender_id", "friend_requests", ["sender_id"], unique=False)
    op.create_index("ix_friend_requests_receiver_id", "friend_requests", ["receiver_id"], unique=False)
    op.create_index(
        "uq_friend_requests_pending_pair",
        "friend_requests",
        ["pair_low_id", "pair_high_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "friendships",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user1_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user2_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("user1_id < user2_id", name="ck_friendships_pair_order"),
        sa.ForeignKeyConstraint(["user1_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["user2_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user1_id", "user2_id", name="uq_friendships_pair"),
    )
    op.create_index("ix_friendships_user1_id", "friendships", ["user1_id"], unique=False)
    op.create_index("ix_friendships_user2_id", "friendships", ["user2_id"], unique=False)

    op.create_table(
        "shared_images",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("friendship_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("image_url", sa.String(length=1000), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["friendship_id"], ["friendships.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shared_images_friendship_id", "shared_images", ["friendship_id"], unique=False)
    op.create_index("ix_shared_images_sender_id", "shared_images", ["sender_id"], unique=False)
    op.create_index("ix_shared_images_created_at", "shared_images", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_shared_images_created_at", table_name="shared_images")
    op.drop_index("ix_shared_images_sender_id", table_name="shared_images")
    op.drop_index("ix_shared_images_friendship_id", table_name="shared_images")
    op.drop_table("shared_images")

    op.drop_index("ix_friendships_user2_id", table_name="friendships")
    op.drop_index("ix_friendships_user1_id", table_name="friendships")
    op.drop_table("friendships")

    op.drop_index("uq_friend_requests_pending_pair", table_name="friend_requests")
    op.drop_index("ix_friend_requests_receiver_id", table_name="friend_requests")
    op.drop_index("ix_friend_requests_sender_id", table_name="friend_requests")
    op.drop_table("friend_requests")

    op.drop_index("ix_users_friend_code", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")

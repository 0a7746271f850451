import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(sa.String(50), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)

    profile_image: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)

    # shareable invite token; users add each other by code, never by id
    friend_code: Mapped[str] = mapped_column(sa.String(16), unique=True, index=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

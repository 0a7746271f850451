#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.db.session import AsyncSessionLocal
from app.models.friendship import Friendship
from app.models.shared_image import SharedImage

logger = logging.getLogger("add_shared_image")


def _parse_uuid(raw: str | None) -> UUID | None:
    if raw is None:
        return None
    cleaned = str(raw).strip()
    if not cleaned:
        return None
    try:
        return UUID(cleaned)
    except ValueError:
        return None


def _normalize_image_url(raw: str | None) -> str | None:
    if not isinstance(raw, str):
        return None
    cleaned = raw.strip()
    parsed = urlparse(cleaned)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return None
    return cleaned


def _parse_created_at(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    value = datetime.fromisoformat(raw.strip())
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


async def add_shared_image(
    db: AsyncSession,
    *,
    friendship_id: UUID,
    sender_id: UUID,
    image_url: str,
    created_at: datetime | None = None,
) -> SharedImage:
    friendship = (
        await db.execute(select(Friendship).where(Friendship.id == friendship_id))
    ).scalar_one_or_none()
    if friendship is None:
        raise ValueError(f"Friendship {friendship_id} not found")

    if sender_id not in (friendship.user1_id, friendship.user2_id):
        raise ValueError(f"User {sender_id} is not part of friendship {friendship_id}")

    image = SharedImage(friendship_id=friendship_id, sender_id=sender_id, image_url=image_url)
    if created_at is not None:
        image.created_at = created_at
    db.add(image)
    await db.commit()
    await db.refresh(image)

    logger.info("Shared image %s added to friendship %s", image.id, friendship_id)
    return image


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Record an image shared between two friends.",
    )
    parser.add_argument("--friendship-id", required=True, help="Friendship the image belongs to.")
    parser.add_argument("--sender-id", required=True, help="User who shared the image.")
    parser.add_argument("--image-url", required=True, help="Public http(s) URL of the image.")
    parser.add_argument(
        "--created-at",
        default=None,
        help="Optional ISO-8601 timestamp; defaults to now. Naive values are read as UTC.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log SQL-level progress.")
    args = parser.parse_args()

    args.friendship_id = _parse_uuid(args.friendship_id)
    if args.friendship_id is None:
        parser.error("--friendship-id must be a UUID.")
    args.sender_id = _parse_uuid(args.sender_id)
    if args.sender_id is None:
        parser.error("--sender-id must be a UUID.")
    args.image_url = _normalize_image_url(args.image_url)
    if args.image_url is None:
        parser.error("--image-url must be an absolute http(s) URL.")
    try:
        args.created_at = _parse_created_at(args.created_at)
    except ValueError:
        parser.error("--created-at must be an ISO-8601 timestamp.")

    return args


async def _main_async(args: argparse.Namespace) -> SharedImage:
    async with AsyncSessionLocal() as db:
        return await add_shared_image(
            db,
            friendship_id=args.friendship_id,
            sender_id=args.sender_id,
            image_url=args.image_url,
            created_at=args.created_at,
        )


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        image = asyncio.run(_main_async(args))
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(image.id)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

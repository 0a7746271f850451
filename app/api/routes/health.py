from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Backend is running"


@router.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}

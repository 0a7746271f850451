from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.http_errors import value_error
from app.schemas.auth import LoginRequest, LoginResponse, UserOut
from app.services.auth import authenticate_or_register

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    try:
        user, created = await authenticate_or_register(db, payload.username, payload.password)
        await db.commit()
    except ValueError as e:
        await db.rollback()
        raise value_error(e) from e

    message = "User created successfully" if created else "Login successful"
    return LoginResponse(message=message, user=UserOut.model_validate(user))

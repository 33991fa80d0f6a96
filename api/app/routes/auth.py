"""Player accounts: register, login, token refresh, current user.

Every successful call returns a fresh access/refresh pair; the refresh token
is only accepted by /auth/refresh.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import REFRESH, hash_password, issue_tokens, read_subject, verify_password
from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.models.user import User, normalise_email
from app.schemas import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def _user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == normalise_email(email)))
    return result.scalar_one_or_none()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    if await _user_by_email(db, body.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    player = User(
        email=body.email,
        hashed_password=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
    )
    db.add(player)
    await db.flush()

    logger.info("Registered user %s", player.id)
    return TokenResponse(**issue_tokens(player.id))


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    player = await _user_by_email(db, body.email)
    if player is None or not verify_password(body.password, player.hashed_password):
        raise _unauthorized("Invalid email or password")
    if not player.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    return TokenResponse(**issue_tokens(player.id))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    try:
        user_id = read_subject(body.refresh_token, REFRESH)
    except JWTError:
        raise _unauthorized("Invalid refresh token") from None

    player = await db.get(User, user_id)
    if player is None or not player.is_active:
        raise _unauthorized("User not found")

    return TokenResponse(**issue_tokens(player.id))


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    return user

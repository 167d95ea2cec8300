"""
Authentication routes — signup, login, current user.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from grokchat.models.database import get_db
from grokchat.models.entities import User
from grokchat.models.schemas import SignupRequest, LoginRequest, AuthResponse, UserResponse
from grokchat.services.auth_service import (
    hash_password, verify_password, create_user_token,
    pick_avatar_color, get_current_user,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _normalize_email(email: str) -> str:
    return email.strip().lower()


@router.post("/signup", response_model=AuthResponse)
async def signup(req: SignupRequest, db: AsyncSession = Depends(get_db)):
    if not req.name or not req.email or not req.password:
        raise HTTPException(status_code=400, detail="Missing fields")

    email = _normalize_email(req.email)
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already exists")

    user = User(
        name=req.name.strip(),
        email=email,
        hashed_password=hash_password(req.password),
        avatar_color=pick_avatar_color(),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same address
        await db.rollback()
        raise HTTPException(status_code=400, detail="Email already exists")

    logger.info(f"New user signed up: {user.id}")
    return AuthResponse(token=create_user_token(user), user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, db: AsyncSession = Depends(get_db)):
    if not req.email or not req.password:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    result = await db.execute(select(User).where(User.email == _normalize_email(req.email)))
    user = result.scalar_one_or_none()

    if not user or not verify_password(req.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return AuthResponse(token=create_user_token(user), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..models import User
from ..schemas import PasswordChange, ProfileUpdate, Token, UserCreate, UserLogin, UserPublic
from ..services.security import create_access_token, hash_password, token_lifetime_minutes, verify_password
from .deps import get_current_user
from .envelope import ok

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", status_code=201)
async def register(user: UserCreate, session: AsyncSession = Depends(get_session)):
    email = user.email.lower()
    exists = await session.scalar(select(User).where(User.email == email))
    if exists:
        raise HTTPException(status_code=400, detail="User already exists")

    db_user = User(
        email=email,
        password_hash=hash_password(user.password),
        first_name=user.first_name.strip(),
        last_name=user.last_name.strip(),
    )
    session.add(db_user)
    await session.commit()
    await session.refresh(db_user)
    logger.info("Registered user %s", db_user.id)
    return ok(UserPublic.model_validate(db_user), message="User registered successfully")


@router.post("/login")
async def login(user: UserLogin, session: AsyncSession = Depends(get_session)):
    db_user = await session.scalar(select(User).where(User.email == user.email.lower()))
    if not db_user or not verify_password(user.password, db_user.password_hash):
        raise HTTPException(status_code=400, detail="Incorrect credentials")

    db_user.last_login = datetime.utcnow()
    await session.commit()

    token = create_access_token(user_id=db_user.id, role=db_user.role)
    return ok(
        Token(access_token=token, token_type="bearer"),
        expires_in=token_lifetime_minutes() * 60,
    )


@router.get("/profile")
async def profile(current_user: User = Depends(get_current_user)):
    return ok(UserPublic.model_validate(current_user))


@router.put("/profile")
async def update_profile(
    body: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    current_user.first_name = body.first_name.strip()
    current_user.last_name = body.last_name.strip()
    await session.commit()
    await session.refresh(current_user)
    return ok(UserPublic.model_validate(current_user), message="Profile updated successfully")


@router.put("/password")
async def change_password(
    body: PasswordChange,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if not verify_password(body.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.password_hash = hash_password(body.new_password)
    await session.commit()
    return ok(message="Password updated successfully")

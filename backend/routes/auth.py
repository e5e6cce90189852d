"""
Auth endpoints: email/password accounts and session tokens.

Flow:
  1) POST /auth/register -> creates the account (ADMIN cannot self-register)
  2) POST /auth/login    -> verifies credentials, returns a JWT and sets it
                            as the `token` cookie for the web dashboard
  3) GET  /auth/me       -> the authenticated user
"""
import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from db_models import User
from deps import get_current_user
from domain.enums import UserRole
from domain.errors import failure_message
from domain.responses import dump
from middleware.auth import issue_access_token
from middleware.rate_limit import rate_limit
from models import LoginResponse, UserResponse
from services import auth_service
from utils.validators import validate_phone_number

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)
    phone: str | None = None
    role: UserRole = UserRole.CUSTOMER

    @field_validator("phone")
    @classmethod
    def _phone(cls, v):
        return validate_phone_number(v) if v else None


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


@router.post("/register")
@failure_message("Failed to register user")
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit()),
):
    user = await auth_service.register_user(
        db,
        email=body.email,
        password=body.password,
        name=body.name,
        phone=body.phone,
        role=body.role,
    )
    await db.commit()
    return dump(UserResponse, user)


@router.post("/login")
@failure_message("Failed to log in")
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit()),
):
    user = await auth_service.authenticate(db, email=body.email, password=body.password)
    token = issue_access_token(user_id=user.id, role=user.role)

    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
        max_age=settings.jwt_access_ttl_minutes * 60,
    )
    logger.info(f"User {user.id} logged in")
    return dump(LoginResponse, {"token": token, "user": user})


@router.get("/me")
@failure_message("Failed to fetch user")
async def me(user: User = Depends(get_current_user)):
    return dump(UserResponse, user)

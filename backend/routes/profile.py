"""
Profile endpoints for the authenticated user.

  GET /profile   own account with profile fields and tags
  PUT /profile   update name, phone, bio, location, website, avatar
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import get_current_user
from domain.errors import failure_message
from domain.responses import dump
from models import ProfileResponse
from services import auth_service
from utils.validators import validate_phone_number

logger = logging.getLogger(__name__)
router = APIRouter(tags=["profile"])


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    phone: str | None = None
    bio: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=200)
    website: str | None = Field(default=None, max_length=300, pattern=r"^https?://\S+$")
    avatar: str | None = Field(default=None, max_length=500)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v):
        return validate_phone_number(v) if v else None


@router.get("/profile")
@failure_message("Failed to fetch profile")
async def get_profile(user: User = Depends(get_current_user)):
    return dump(ProfileResponse, user)


@router.put("/profile")
@failure_message("Failed to update profile")
async def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await auth_service.update_profile(db, user=user, changes=body.model_dump(exclude_unset=True))
    await db.commit()
    return dump(ProfileResponse, user)

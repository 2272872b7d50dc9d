"""User router: /api/v1/users/me profile and settings."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from anuva.auth.dependencies import get_current_user, get_current_user_id
from anuva.database import get_session
from anuva.db.models import User
from anuva.users.schemas import (
    ProfileUpdateRequest,
    SettingsResponse,
    SettingsUpdateRequest,
    UserResponse,
)
from anuva.users.service import get_user_settings, update_profile, upsert_user_settings

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        date_of_birth=user.date_of_birth,
        phone_number=user.phone_number,
        profile_image_url=user.profile_image_url,
        role=user.role,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    """Get own profile."""
    return _user_response(user)


@router.patch("/me", response_model=UserResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update name, date of birth, phone number or profile image."""
    user = await update_profile(db, user, body.model_dump(exclude_unset=True))
    await db.commit()
    return _user_response(user)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@router.get("/me/settings", response_model=SettingsResponse)
async def get_settings_endpoint(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> SettingsResponse:
    return SettingsResponse(**await get_user_settings(db, user_id))


@router.put("/me/settings", response_model=SettingsResponse)
async def put_settings_endpoint(
    body: SettingsUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> SettingsResponse:
    """Create or update settings. Omitted fields keep their current value."""
    values = await upsert_user_settings(db, user_id, body.model_dump(exclude_unset=True))
    await db.commit()
    return SettingsResponse(**values)

"""Profile router — read and edit the current user's account."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from lineups.database import get_db
from lineups.middleware.auth import get_current_user
from lineups.models.user import User
from lineups.schemas.auth import UserProfileResponse, UpdateProfileRequest, ProfileTokenResponse
from lineups.services import auth_service
from lineups.services.errors import AccountConflict, AuthError, StoreUnavailable

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=UserProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return UserProfileResponse(
        id=current_user.id,
        username=current_user.username,
        email=current_user.email,
        created_at=current_user.created_at.isoformat(),
    )


@router.put("", response_model=ProfileTokenResponse)
def update_profile(
    req: UpdateProfileRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update username / email / password and return a fresh access token."""
    try:
        user = auth_service.update_profile(
            db,
            current_user.id,
            current_password=req.current_password,
            username=req.username,
            email=req.email,
            new_password=req.new_password,
        )
    except AccountConflict as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailable:
        raise HTTPException(status_code=500, detail="Profile update failed")
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ProfileTokenResponse(token=auth_service.new_access_token(user))

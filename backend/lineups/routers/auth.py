"""Auth router — registration, login and token refresh."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from lineups.config import settings
from lineups.database import get_db
from lineups.middleware.rate_limit import limiter
from lineups.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    TokenResponse,
    MessageResponse,
)
from lineups.services import auth_service
from lineups.services.errors import (
    AccountConflict,
    AuthError,
    InvalidCredentials,
    InvalidRefreshToken,
    StoreUnavailable,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=MessageResponse, status_code=201)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def register(request: Request, req: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new user."""
    try:
        auth_service.register_user(db, req.email, req.password, req.username)
    except AccountConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailable:
        raise HTTPException(status_code=500, detail="Registration failed")
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, req: LoginRequest, db: Session = Depends(get_db)):
    """Login and get an access token plus a refresh token."""
    try:
        token, refresh_token = auth_service.login(db, req.email, req.password)
    except InvalidCredentials:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    except StoreUnavailable:
        raise HTTPException(status_code=500, detail="Login failed")
    return TokenResponse(token=token, refresh_token=refresh_token)


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def refresh(request: Request, req: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new pair. The old refresh token stops working."""
    try:
        token, refresh_token = auth_service.refresh(db, req.refresh_token)
    except InvalidRefreshToken as e:
        raise HTTPException(status_code=401, detail=str(e))
    except StoreUnavailable:
        raise HTTPException(status_code=500, detail="Token refresh failed")
    return TokenResponse(token=token, refresh_token=refresh_token)

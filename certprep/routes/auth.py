"""Authentication routes."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from certprep.config import ACCESS_TOKEN_EXPIRE_MINUTES
from certprep.dependencies.auth import CurrentUser, Db, security
from certprep.models import (
    MessageResponse,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from certprep.models.db.user import User
from certprep.services.auth_service import (
    authenticate,
    create_user,
    get_user_by_login,
    invalidate_session,
    open_session,
    verify_token,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(data: UserRegister, db: Db) -> User:
    """Register a new user."""
    if get_user_by_login(db, data.username) or get_user_by_login(db, data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email already registered",
        )
    return create_user(db, data.username, data.email, data.password, data.display_name)


@router.post("/login", response_model=TokenResponse)
def login(data: UserLogin, db: Db) -> TokenResponse:
    """Login by username or email and get a bearer token."""
    user = authenticate(db, data.username, data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return TokenResponse(
        access_token=open_session(db, user),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Db,
) -> MessageResponse:
    """Invalidate the current session."""
    if credentials is None:
        return MessageResponse(message="Already logged out")

    payload = verify_token(credentials.credentials)
    if payload and payload.get("jti"):
        invalidate_session(db, payload["jti"])

    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def me(current_user: CurrentUser) -> User:
    """Current user profile."""
    return current_user

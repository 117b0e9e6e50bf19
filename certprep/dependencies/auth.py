"""Authentication dependencies for FastAPI."""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session as DbSession

from certprep.database import get_db
from certprep.models.db.user import User
from certprep.services.auth_service import (
    extend_session,
    get_active_session,
    get_user_by_id,
    verify_token,
)

# HTTP Bearer scheme for JWT
security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[DbSession, Depends(get_db)],
) -> User:
    """Resolve the bearer token to an active user.

    Raises:
        HTTPException: 401 if not authenticated or token is invalid.
    """
    if credentials is None:
        raise _unauthenticated("Not authenticated")

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise _unauthenticated("Invalid or expired token")

    jti = payload.get("jti")
    if not jti:
        raise _unauthenticated("Invalid token payload")
    session = get_active_session(db, jti)
    if session is None:
        raise _unauthenticated("Session expired or invalidated")
    extend_session(db, session)

    user_id = payload.get("sub")
    user = get_user_by_id(db, int(user_id)) if user_id is not None else None
    if user is None:
        raise _unauthenticated("User not found")
    if not user.is_active:
        raise _unauthenticated("User is inactive")

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
Db = Annotated[DbSession, Depends(get_db)]

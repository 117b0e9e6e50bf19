"""Account and token handling for exam takers."""
import logging
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session as DbSession

from certprep.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    SECRET_KEY,
    SESSION_EXTEND_MINUTES,
)
from certprep.models.db.user import Session, User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"), hashed_password.encode("utf-8")
    )


def create_access_token(user_id: int, jti: str | None = None) -> tuple[str, str]:
    """Create a JWT access token.

    Returns:
        Tuple of (token, jti)
    """
    jti = jti or str(uuid.uuid4())
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": str(user_id), "exp": expire, "jti": jti}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM), jti


def verify_token(token: str) -> dict | None:
    """Decode a JWT token, or None if it is invalid or expired."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def get_user_by_id(db: DbSession, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_login(db: DbSession, login: str) -> User | None:
    """Find a user by username or email."""
    return db.execute(
        select(User).where(or_(User.username == login, User.email == login))
    ).scalars().first()


def create_user(
    db: DbSession,
    username: str,
    email: str,
    password: str,
    display_name: str | None = None,
) -> User:
    """Create a new user."""
    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
        display_name=display_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id} ({username})")
    return user


def authenticate(db: DbSession, login: str, password: str) -> User | None:
    """Return the active user matching the credentials, else None."""
    user = get_user_by_login(db, login)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def open_session(db: DbSession, user: User) -> str:
    """Issue an access token backed by a server-side session row."""
    token, jti = create_access_token(user.id)
    db.add(
        Session(
            user_id=user.id,
            token_jti=jti,
            expires_at=datetime.now(timezone.utc)
            + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        )
    )
    db.commit()
    return token


def get_active_session(db: DbSession, token_jti: str) -> Session | None:
    """Get an active, unexpired session by token JTI."""
    now = datetime.now(timezone.utc)
    return db.execute(
        select(Session).where(
            Session.token_jti == token_jti,
            Session.is_active.is_(True),
            Session.expires_at > now,
        )
    ).scalars().first()


def extend_session(db: DbSession, session: Session) -> Session:
    """Slide session expiry forward on activity."""
    now = datetime.now(timezone.utc)
    session.last_activity = now
    session.expires_at = now + timedelta(minutes=SESSION_EXTEND_MINUTES)
    db.commit()
    return session


def invalidate_session(db: DbSession, token_jti: str) -> None:
    """Invalidate a session by token JTI."""
    session = db.execute(
        select(Session).where(Session.token_jti == token_jti)
    ).scalars().first()
    if session:
        session.is_active = False
        db.commit()


def cleanup_expired_sessions(db: DbSession) -> int:
    """Delete expired or logged-out sessions. Returns the number removed."""
    now = datetime.now(timezone.utc)
    result = db.execute(
        delete(Session).where(
            or_(Session.expires_at < now, Session.is_active.is_(False))
        )
    )
    db.commit()
    return result.rowcount or 0

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from hardban_lab.config import settings
from hardban_lab.database import get_db
from hardban_lab.exceptions import AuthError, PermissionDenied
from hardban_lab.models import USER_ROLES, UserDB

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ALL_ROLES = USER_ROLES
EDITOR_ROLES = ("editor", "manager", "admin")

bearer_scheme = HTTPBearer(auto_error=False)


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_access_token(user: UserDB) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def create_refresh_token(user: UserDB) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "type": "refresh",
        "iat": now,
        "exp": now + timedelta(days=settings.refresh_token_days),
    }
    return jwt.encode(payload, settings.refresh_token_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")
    if payload.get("type") == "refresh":
        raise AuthError("Invalid token")
    return payload


def decode_refresh_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.refresh_token_secret, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        raise AuthError("Invalid refresh token")
    if payload.get("type") != "refresh":
        raise AuthError("Invalid refresh token")
    return payload


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> UserDB:
    if credentials is None or not credentials.credentials:
        raise AuthError("Authentication required")

    payload = decode_access_token(credentials.credentials)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthError("Invalid token")

    user = db.query(UserDB).filter(UserDB.id == user_id).first()
    if not user or not user.is_active:
        raise AuthError("Invalid token")
    return user


def require_roles(*roles):
    """Dependency factory letting through only users whose role is in `roles`."""
    allowed = roles or ALL_ROLES

    def checker(user: UserDB = Depends(get_current_user)) -> UserDB:
        if user.role not in allowed:
            logger.warning(f"User {user.username} with role {user.role} denied, needs one of {allowed}")
            raise PermissionDenied("Insufficient permissions")
        return user

    return checker

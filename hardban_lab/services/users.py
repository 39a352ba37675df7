import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from hardban_lab import repositories, security
from hardban_lab.exceptions import AuthError, ConflictError, NotFoundError, ValidationFailed
from hardban_lab.models import USER_ROLES, UserDB
from hardban_lab.schemas import RegisterRequest

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


def serialize_user(user: UserDB) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role,
        "is_active": user.is_active,
        "last_login": user.last_login,
        "created_at": user.created_at,
    }


def register(db: Session, data: RegisterRequest) -> UserDB:
    if db.query(UserDB).filter(func.lower(UserDB.username) == data.username.lower()).first():
        raise ConflictError("Username is already taken")
    email = data.email.strip().lower() if data.email else None
    if email and db.query(UserDB).filter(UserDB.email == email).first():
        raise ConflictError("Email is already registered")

    user = repositories.users.create(
        db,
        username=data.username,
        email=email,
        password_hash=security.hash_password(data.password),
        display_name=data.display_name or data.username,
        role="user",
    )
    logger.info(f"Registered user {user.username} (id={user.id})")
    return user


def login(db: Session, username: str, password: str) -> dict:
    user = db.query(UserDB).filter(func.lower(UserDB.username) == (username or "").lower()).first()
    if not user or not user.is_active or not security.verify_password(password, user.password_hash):
        logger.warning(f"Failed login for {username}")
        raise AuthError(INVALID_CREDENTIALS)

    repositories.users.update(db, user, {"last_login": datetime.utcnow()})
    logger.info(f"User {user.username} logged in")
    return {
        "token": security.create_access_token(user),
        "refresh_token": security.create_refresh_token(user),
        "user": serialize_user(user),
    }


def refresh(db: Session, refresh_token: str) -> str:
    payload = security.decode_refresh_token(refresh_token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthError("Invalid refresh token")
    user = repositories.users.get(db, user_id)
    if not user or not user.is_active:
        raise AuthError("Invalid refresh token")
    return security.create_access_token(user)


def list_users(db: Session):
    return [serialize_user(u) for u in db.query(UserDB).order_by(UserDB.id).all()]


def update_role(db: Session, user_id: int, role: str) -> UserDB:
    user = repositories.users.get(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    if role not in USER_ROLES:
        raise ValidationFailed(f"Invalid role. Allowed: {', '.join(USER_ROLES)}")
    user = repositories.users.update(db, user, {"role": role})
    logger.info(f"User {user.username} role set to {role}")
    return user


def delete_user(db: Session, user_id: int, current_user: UserDB) -> None:
    user = repositories.users.get(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.id == current_user.id:
        raise ValidationFailed("You cannot delete your own account")
    repositories.users.delete(db, user)
    logger.info(f"Deleted user {user_id}")

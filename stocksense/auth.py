from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from stocksense.config import get_settings
from stocksense.database import get_db
from stocksense.models import UserAccount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserSession:
    """The authenticated user for one request, passed explicitly to whoever needs it."""

    user_id: int
    username: str
    full_name: str
    api_key: str

    @classmethod
    def from_user(cls, user: UserAccount) -> UserSession:
        return cls(user_id=user.id, username=user.username, full_name=user.full_name, api_key=user.api_key)


class UsernameTakenError(ValueError):
    def __init__(self, username: str) -> None:
        super().__init__(f"Username already taken: {username}")
        self.username = username


def _get_auth_password_pepper() -> str:
    pepper = get_settings().password_pepper
    if not pepper:
        raise RuntimeError("AUTH_PASSWORD_PEPPER is required and must be non-empty")
    return pepper


def ensure_auth_config() -> None:
    _get_auth_password_pepper()


def hash_password(raw_password: str) -> str:
    pepper = _get_auth_password_pepper()
    iterations = get_settings().password_iterations

    salt_hex = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        f"{pepper}:{raw_password}".encode("utf-8"),
        bytes.fromhex(salt_hex),
        iterations,
    ).hex()
    return f"pbkdf2_sha256${iterations}${salt_hex}${digest}"


def verify_password(raw_password: str, password_hash: str) -> bool:
    parts = password_hash.split("$")
    if len(parts) != 4 or parts[0] != "pbkdf2_sha256":
        return False
    _, iteration_str, salt_hex, expected_digest = parts
    try:
        iterations = int(iteration_str)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False

    candidate_digest = hashlib.pbkdf2_hmac(
        "sha256",
        f"{_get_auth_password_pepper()}:{raw_password}".encode("utf-8"),
        salt,
        iterations,
    ).hex()
    return hmac.compare_digest(candidate_digest, expected_digest)


def authenticate(db: Session, username: str, password: str) -> UserSession | None:
    user = db.scalar(select(UserAccount).where(UserAccount.username == username.strip()))
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        logger.warning("Failed login for %r", username)
        return None
    return UserSession.from_user(user)


def register_user(db: Session, username: str, full_name: str, password: str) -> UserSession:
    username = username.strip()
    if db.scalar(select(UserAccount).where(UserAccount.username == username)):
        raise UsernameTakenError(username)

    user = UserAccount(
        username=username,
        full_name=full_name.strip(),
        password_hash=hash_password(password),
        api_key=secrets.token_urlsafe(32),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.username)
    return UserSession.from_user(user)


def resolve_session(db: Session, api_key: str | None) -> UserSession | None:
    if not api_key:
        return None
    user = db.scalar(
        select(UserAccount).where(UserAccount.api_key == api_key, UserAccount.is_active.is_(True))
    )
    return UserSession.from_user(user) if user else None


def get_optional_session(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    db: Session = Depends(get_db),
) -> UserSession | None:
    api_key = x_api_key or request.cookies.get(get_settings().session_cookie_name)
    return resolve_session(db, api_key)


def require_session(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    db: Session = Depends(get_db),
) -> UserSession:
    api_key = x_api_key or request.cookies.get(get_settings().session_cookie_name)
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-API-Key header",
        )

    session = resolve_session(db, api_key)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
    return session

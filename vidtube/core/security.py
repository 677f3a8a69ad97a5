# vidtube/core/security.py
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from jose import JWTError, jwt
from passlib.context import CryptContext

from vidtube.core.config import settings
from vidtube.core.errors import Internal

logger = logging.getLogger(__name__)

# Контекст для хеширования паролей (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _encode(claims: dict, secret: str, expires_minutes: int) -> str:
    to_encode = claims.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    return jwt.encode(to_encode, secret, algorithm=settings.algorithm)


def create_access_token(user: dict) -> str:
    return _encode(
        {
            "sub": str(user["_id"]),
            "email": user.get("email"),
            "username": user.get("username"),
            "fullName": user.get("fullName"),
        },
        settings.jwt_secret_key,
        settings.access_token_expire_minutes,
    )


def create_refresh_token(user_id) -> str:
    return _encode({"sub": str(user_id)}, settings.refresh_token_secret_key, settings.refresh_token_expire_minutes)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


class TokenUserStore(Protocol):
    def find_user(self, user_id, include_private: bool = False) -> Optional[dict]: ...

    def set_refresh_token(self, user_id, token: Optional[str]) -> None: ...


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


def generate_tokens(user_id, users: TokenUserStore) -> TokenPair:
    """Issues an access/refresh pair for the user and stores the refresh token on it."""
    try:
        user = users.find_user(user_id)
        if user is None:
            raise LookupError(f"user {user_id} not found")
        pair = TokenPair(access_token=create_access_token(user), refresh_token=create_refresh_token(user["_id"]))
        users.set_refresh_token(user["_id"], pair.refresh_token)
        return pair
    except Exception as e:
        logger.error(f"Token generation failed for user {user_id}: {e}", exc_info=True)
        raise Internal("something went wrong while creating refresh and access tokens")

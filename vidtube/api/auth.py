# vidtube/api/auth.py
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from vidtube.core.config import settings
from vidtube.core.database import StoreDep, is_valid_id
from vidtube.core.errors import Unauthorized
from vidtube.core.security import decode_access_token

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

# Токен можно передать заголовком Authorization: Bearer ... или cookie accessToken
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/users/login", auto_error=False)


def get_access_token(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """Dependency to extract the access token from the cookie or the Authorization header."""
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or bearer


def get_current_user(store: StoreDep, token: Optional[str] = Depends(get_access_token)) -> dict:
    """Dependency to get the current user document (without password and refresh token)."""
    if not token:
        raise Unauthorized("Unauthorized request")

    payload = decode_access_token(token)
    if payload is None:
        logger.warning("Invalid or expired access token")
        raise Unauthorized("Invalid access token")

    user_id = payload.get("sub")
    if not is_valid_id(user_id):
        logger.error(f"Invalid user ID in token 'sub': {user_id}")
        raise Unauthorized("Invalid access token")

    user = store.find_user(user_id)
    if user is None:
        logger.error(f"User with ID '{user_id}' from token not found in DB")
        raise Unauthorized("Invalid access token")
    return user

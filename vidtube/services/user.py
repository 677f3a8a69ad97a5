# vidtube/services/user.py
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from vidtube.core.asset_store import AssetStoreError
from vidtube.core.errors import Conflict, Internal, InvalidArgument, NotFound, Unauthorized, UpstreamFailure
from vidtube.core.security import generate_tokens, get_password_hash, verify_password
from vidtube.models.user import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store, assets):
        self.store = store
        self.assets = assets

    async def register(
        self,
        full_name: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        avatar_path: Optional[str],
        cover_image_path: Optional[str] = None,
    ) -> dict:
        if any(field is None or not field.strip() for field in (full_name, email, username, password)):
            raise InvalidArgument("All fields are required")

        try:
            # avatar заполняется после загрузки в Cloudinary
            user = User(
                fullName=full_name.strip(),
                email=email.strip(),
                username=username.strip(),
                avatar="",
                password=get_password_hash(password),
            )
        except ValidationError as e:
            raise InvalidArgument("Invalid user data", errors=[err["msg"] for err in e.errors()]) from e

        if self.store.find_user_by_login(username=user.username, email=user.email):
            raise Conflict("User with email or username already exists")

        if not avatar_path:
            raise InvalidArgument("Avatar file is required")

        try:
            avatar = await self.assets.upload(avatar_path)
            cover_image = await self.assets.upload(cover_image_path)
        except AssetStoreError as e:
            logger.error(f"Image upload failed during registration of {user.username}: {e}", exc_info=True)
            raise UpstreamFailure("Error while uploading avatar") from e
        if avatar is None:
            raise UpstreamFailure("Error while uploading avatar")

        user.avatar = avatar.url
        user.coverImage = cover_image.url if cover_image else ""
        user_id = self.store.insert_user(user.to_document())

        created = self.store.find_user(user_id)
        if created is None:
            raise Internal("Something went wrong while registering the user")

        logger.info(f"User {user.username} registered ({user_id})")
        return created

    def login(self, password: Optional[str], username: Optional[str] = None, email: Optional[str] = None) -> Dict[str, Any]:
        if not username and not email:
            raise InvalidArgument("username or email is required")

        user = self.store.find_user_by_login(username=username, email=email)
        if user is None:
            raise NotFound("User does not exist")

        if not password or not verify_password(password, user["password"]):
            logger.warning(f"Invalid password for user {user['_id']}")
            raise Unauthorized("Invalid user credentials")

        tokens = generate_tokens(user["_id"], self.store)
        logged_in = self.store.find_user(user["_id"])

        logger.info(f"User {user['_id']} logged in")
        return {"user": logged_in, "accessToken": tokens.access_token, "refreshToken": tokens.refresh_token}

    def logout(self, user_id) -> None:
        self.store.set_refresh_token(user_id, None)
        logger.info(f"User {user_id} logged out")

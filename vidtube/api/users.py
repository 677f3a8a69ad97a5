# vidtube/api/users.py
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from vidtube.api.auth import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, get_current_user
from vidtube.core.asset_store import AssetStoreDep
from vidtube.core.config import settings
from vidtube.core.database import StoreDep
from vidtube.core.uploads import remove_uploads, save_upload
from vidtube.schemas.response import ApiResponse, to_jsonable
from vidtube.schemas.user import LoginRequest
from vidtube.services.user import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_user_service(store: StoreDep, assets: AssetStoreDep) -> UserService:
    return UserService(store, assets)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]

COOKIE_OPTIONS = {"httponly": True, "secure": True, "path": "/"}


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    service: UserServiceDep,
    fullName: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    coverImage: Optional[UploadFile] = File(None),
):
    """Регистрация: multipart с аватаром (обязателен) и обложкой (опционально)."""
    avatar_path = cover_image_path = None
    try:
        avatar_path = await save_upload(avatar)
        cover_image_path = await save_upload(coverImage)
        user = await service.register(fullName, email, username, password, avatar_path, cover_image_path)
    finally:
        remove_uploads(avatar_path, cover_image_path)
    return ApiResponse(statusCode=status.HTTP_201_CREATED, data=user, message="User registered successfully")


@router.post("/login")
async def login(payload: LoginRequest, service: UserServiceDep):
    result = service.login(payload.password, username=payload.username, email=payload.email)
    body = ApiResponse(data=result, message="User logged in successfully")

    response = JSONResponse(content=to_jsonable(body))
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=result["accessToken"],
        max_age=settings.access_token_expire_minutes * 60,
        **COOKIE_OPTIONS,
    )
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=result["refreshToken"],
        max_age=settings.refresh_token_expire_minutes * 60,
        **COOKIE_OPTIONS,
    )
    return response


@router.post("/logout")
async def logout(service: UserServiceDep, current_user: dict = Depends(get_current_user)):
    service.logout(current_user["_id"])
    response = JSONResponse(content=to_jsonable(ApiResponse(data={}, message="User logged out successfully")))
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **COOKIE_OPTIONS)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, **COOKIE_OPTIONS)
    return response


@router.get("/current-user")
async def read_current_user(current_user: dict = Depends(get_current_user)):
    return ApiResponse(data=current_user, message="Current user fetched successfully")

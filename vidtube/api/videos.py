# vidtube/api/videos.py
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from vidtube.api.auth import get_current_user
from vidtube.core.asset_store import AssetStoreDep
from vidtube.core.database import StoreDep
from vidtube.core.rate_limiter import rate_limit_search
from vidtube.core.uploads import remove_uploads, save_upload
from vidtube.schemas.response import ApiResponse
from vidtube.services.video import VideoService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_video_service(store: StoreDep, assets: AssetStoreDep) -> VideoService:
    return VideoService(store, assets)


VideoServiceDep = Annotated[VideoService, Depends(get_video_service)]


@router.get("")
async def get_all_videos(
    service: VideoServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    query: Optional[str] = Query(None, description="Полнотекстовый поиск по title/description"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="views | createdAt | duration"),
    sort_type: Optional[str] = Query(None, alias="sortType", description="asc | desc"),
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user: dict = Depends(get_current_user),
    _rate_limited: bool = Depends(rate_limit_search),
):
    """Лента опубликованных видео с поиском, фильтром по владельцу, сортировкой и пагинацией."""
    videos = service.get_all_videos(
        page=page, limit=limit, query=query, user_id=user_id, sort_by=sort_by, sort_type=sort_type
    )
    return ApiResponse(data=videos, message="Videos fetched successfully")


@router.post("")
async def publish_video(
    service: VideoServiceDep,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    videoFile: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
):
    video_path = thumbnail_path = None
    try:
        video_path = await save_upload(videoFile)
        thumbnail_path = await save_upload(thumbnail)
        video = await service.publish_video(current_user["_id"], title, description, video_path, thumbnail_path)
    finally:
        # Временные файлы не должны оставаться после отказа
        remove_uploads(video_path, thumbnail_path)
    return ApiResponse(data=video, message="Video published successfully")


@router.get("/{video_id}")
async def get_video_by_id(
    video_id: str,
    service: VideoServiceDep,
    current_user: dict = Depends(get_current_user),
):
    """Видео с лайками и подписчиками владельца. Засчитывает просмотр и пишет в историю."""
    result = service.get_video_by_id(video_id, current_user["_id"])
    return ApiResponse(data=result, message="Video fetched successfully")


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    service: VideoServiceDep,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
):
    thumbnail_path = await save_upload(thumbnail)
    try:
        video = await service.update_video(
            video_id, current_user["_id"], title=title, description=description, thumbnail_path=thumbnail_path
        )
    finally:
        remove_uploads(thumbnail_path)
    return ApiResponse(data=video, message="Video updated successfully")


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    service: VideoServiceDep,
    current_user: dict = Depends(get_current_user),
):
    video = await service.delete_video(video_id, current_user["_id"])
    return ApiResponse(data=video, message="Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
async def toggle_publish_status(
    video_id: str,
    service: VideoServiceDep,
    current_user: dict = Depends(get_current_user),
):
    status = service.toggle_publish_status(video_id, current_user["_id"])
    return ApiResponse(data=status, message="Video publish status toggled successfully")

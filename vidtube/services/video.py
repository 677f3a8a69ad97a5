# vidtube/services/video.py
import logging
from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError

from vidtube.core.asset_store import AssetStoreError, UploadedAsset
from vidtube.core.config import settings
from vidtube.core.database import is_valid_id, to_object_id
from vidtube.core.errors import Forbidden, Internal, InvalidArgument, NotFound, UpstreamFailure
from vidtube.models.video import MediaAsset, Video
from vidtube.services.pipelines import SORT_FIELDS, SORT_TYPES, build_feed_pipeline, build_video_detail_pipeline

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _media(asset: UploadedAsset) -> MediaAsset:
    return MediaAsset(url=asset.url, public_id=asset.public_id)


class VideoService:
    """Video feed, publishing and engagement accounting.

    `store` is a DocumentStore (or anything with the same methods) and
    `assets` an asset host client with async `upload(path)` / `delete(public_id, resource_type)`.
    """

    def __init__(self, store, assets, search_index: Optional[str] = None):
        self.store = store
        self.assets = assets
        self.search_index = search_index if search_index is not None else settings.search_index_name

    # --- Helpers ---

    @staticmethod
    def _validate_video_id(video_id: str) -> None:
        if not is_valid_id(video_id):
            raise InvalidArgument("Invalid video id")

    def _get_owned_video(self, video_id: str, user_id, action: str) -> dict:
        video = self.store.find_video(video_id)
        if video is None:
            raise NotFound("Video not found")
        if str(video.get("owner")) != str(user_id):
            logger.warning(f"User {user_id} tried to {action} video {video_id} owned by {video.get('owner')}")
            raise Forbidden(f"Only the owner can {action} this video")
        return video

    async def _upload(self, local_path: str, what: str) -> UploadedAsset:
        try:
            asset = await self.assets.upload(local_path)
        except AssetStoreError as e:
            logger.error(f"{what} upload failed: {e}", exc_info=True)
            raise UpstreamFailure(f"Error while uploading {what}") from e
        if asset is None:
            raise UpstreamFailure(f"Error while uploading {what}")
        return asset

    async def _discard(self, public_id: str, resource_type: str = "image") -> bool:
        """Best-effort asset removal; returns False when the asset host refused."""
        try:
            await self.assets.delete(public_id, resource_type=resource_type)
            return True
        except AssetStoreError as e:
            logger.error(f"Could not delete asset {public_id} ({resource_type}): {e}", exc_info=True)
            return False

    # --- Operations ---

    def get_all_videos(
        self,
        page: int = 1,
        limit: int = 10,
        query: Optional[str] = None,
        user_id: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not isinstance(page, int) or page < 1:
            raise InvalidArgument("page must be a positive integer")
        if not isinstance(limit, int) or limit < 1:
            raise InvalidArgument("limit must be a positive integer")
        if user_id and not is_valid_id(user_id):
            raise InvalidArgument("Invalid User Id")
        if sort_by is not None and sort_by not in SORT_FIELDS:
            raise InvalidArgument(f"sortBy must be one of {', '.join(SORT_FIELDS)}")
        if sort_type is not None and sort_type not in SORT_TYPES:
            raise InvalidArgument("sortType must be asc or desc")

        pipeline = build_feed_pipeline(
            query=query or None,
            owner_id=user_id or None,
            sort_by=sort_by,
            sort_type=sort_type,
            search_index=self.search_index,
        )
        return self.store.paginate_videos(pipeline, page=page, limit=limit)

    async def publish_video(
        self,
        owner_id,
        title: Optional[str],
        description: Optional[str],
        video_path: Optional[str],
        thumbnail_path: Optional[str],
    ) -> dict:
        if _is_blank(title) or _is_blank(description):
            raise InvalidArgument("All fields are required")
        if not video_path:
            raise InvalidArgument("Video file is required")
        if not thumbnail_path:
            raise InvalidArgument("Thumbnail is required")

        video_file = await self._upload(video_path, "video file")
        try:
            thumbnail = await self._upload(thumbnail_path, "thumbnail")
        except UpstreamFailure:
            # Откатываем уже загруженное видео
            await self._discard(video_file.public_id, resource_type="video")
            raise

        video = Video(
            title=title.strip(),
            description=description.strip(),
            duration=video_file.duration or 0,
            videoFile=_media(video_file),
            thumbnail=_media(thumbnail),
            owner=to_object_id(owner_id),
            isPublished=True,
        )
        video_id = self.store.insert_video(video.to_document())

        created = self.store.find_video(video_id)
        if created is None:
            raise Internal("Something went wrong while publishing the video")

        logger.info(f"Video {video_id} published by {owner_id}")
        return created

    def get_video_by_id(self, video_id: str, viewer_id=None) -> Dict[str, Any]:
        self._validate_video_id(video_id)

        videos = self.store.aggregate_videos(build_video_detail_pipeline(video_id, viewer_id))
        if not videos:
            raise NotFound("Video not found")
        video = videos[0]

        counted = self.store.increment_views(video_id)
        if counted is not None:
            video["views"] = counted.get("views", video.get("views"))

        watch_history = []
        if viewer_id is not None:
            watch_history = self.store.push_watch_history(viewer_id, video_id) or []

        logger.info(f"View recorded on video {video_id} by {viewer_id}")
        return {"video": video, "watchHistory": watch_history}

    async def update_video(
        self,
        video_id: str,
        user_id,
        title: Optional[str] = None,
        description: Optional[str] = None,
        thumbnail_path: Optional[str] = None,
    ) -> dict:
        self._validate_video_id(video_id)

        fields: Dict[str, Any] = {}
        if not _is_blank(title):
            fields["title"] = title.strip()
        if not _is_blank(description):
            fields["description"] = description.strip()
        if not fields and not thumbnail_path:
            raise InvalidArgument("At least one field should be passed to update")

        current = self._get_owned_video(video_id, user_id, "edit")
        old_thumbnail = current.get("thumbnail") or {}

        new_thumbnail = None
        if thumbnail_path:
            new_thumbnail = await self._upload(thumbnail_path, "thumbnail")
            fields["thumbnail"] = _media(new_thumbnail).model_dump()

        try:
            updated = self.store.update_video(video_id, fields)
        except PyMongoError as e:
            logger.error(f"Update of video {video_id} failed: {e}", exc_info=True)
            updated = None

        if updated is None:
            if new_thumbnail is not None:
                await self._discard(new_thumbnail.public_id)
            raise Internal("Failed to update video please try again")

        # Старую миниатюру удаляем только после успешной записи
        if new_thumbnail is not None and old_thumbnail.get("public_id"):
            await self._discard(old_thumbnail["public_id"])

        logger.info(f"Video {video_id} updated: {', '.join(sorted(fields))}")
        return updated

    async def delete_video(self, video_id: str, user_id) -> dict:
        self._validate_video_id(video_id)
        self._get_owned_video(video_id, user_id, "delete")

        pruned = self.store.pull_from_watch_histories(video_id)

        deleted = self.store.delete_video(video_id)
        if deleted is None:
            raise NotFound("Video not found")
        logger.info(f"Video {video_id} deleted, removed from {pruned} watch histories")

        video_file = deleted.get("videoFile") or {}
        thumbnail = deleted.get("thumbnail") or {}
        results = []
        if video_file.get("public_id"):
            results.append(await self._discard(video_file["public_id"], resource_type="video"))
        if thumbnail.get("public_id"):
            results.append(await self._discard(thumbnail["public_id"]))
        if not all(results):
            raise UpstreamFailure("Video deleted but its files could not be removed from the asset host")

        return deleted

    def toggle_publish_status(self, video_id: str, user_id) -> Dict[str, bool]:
        self._validate_video_id(video_id)
        current = self._get_owned_video(video_id, user_id, "toggle publish status of")

        updated = self.store.update_video(video_id, {"isPublished": not current.get("isPublished", False)})
        if updated is None:
            raise NotFound("Video not found")

        logger.info(f"Video {video_id} isPublished -> {updated['isPublished']}")
        return {"isPublished": updated["isPublished"]}

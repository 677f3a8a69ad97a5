# vidtube/services/pipelines.py
"""
Aggregation pipelines for the video feed and the video detail page.

Both builders are pure: they only shape the pipeline, the store runs it.
"""
from typing import List, Optional

from vidtube.core.database import LIKES, SUBSCRIPTIONS, USERS, to_object_id

SORT_FIELDS = ("views", "createdAt", "duration")
SORT_TYPES = {"asc": 1, "desc": -1}

VIDEO_DETAIL_FIELDS = (
    "videoFile",
    "thumbnail",
    "title",
    "description",
    "views",
    "createdAt",
    "isPublished",
    "duration",
    "owner",
    "likesCount",
    "isLiked",
)


def search_stage(query: str, search_index: Optional[str] = None) -> dict:
    """Full-text search over title and description only."""
    if search_index:
        # Atlas Search: индекс с маппингом title/description
        return {
            "$search": {
                "index": search_index,
                "text": {"query": query, "path": ["title", "description"]},
            }
        }
    # Обычный $text индекс создается в init_db только на title + description
    return {"$match": {"$text": {"$search": query}}}


def membership_flag(viewer_id, array_path: str):
    """True when the viewer id is in the joined array; an absent viewer is always False."""
    if viewer_id is None:
        return {"$literal": False}
    return {"$cond": {"if": {"$in": [to_object_id(viewer_id), array_path]}, "then": True, "else": False}}


def build_feed_pipeline(
    query: Optional[str] = None,
    owner_id=None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
    search_index: Optional[str] = None,
) -> List[dict]:
    pipeline: List[dict] = []

    if query:
        pipeline.append(search_stage(query, search_index))

    if owner_id is not None:
        pipeline.append({"$match": {"owner": to_object_id(owner_id)}})

    # Только опубликованные видео
    pipeline.append({"$match": {"isPublished": True}})

    if sort_by and sort_type:
        pipeline.append({"$sort": {sort_by: SORT_TYPES[sort_type]}})
    else:
        pipeline.append({"$sort": {"createdAt": -1}})

    pipeline.extend([
        {
            "$lookup": {
                "from": USERS,
                "localField": "owner",
                "foreignField": "_id",
                "as": "ownerDetails",
                "pipeline": [{"$project": {"username": 1, "avatar": 1}}],
            }
        },
        {"$unwind": "$ownerDetails"},
    ])
    return pipeline


def build_video_detail_pipeline(video_id, viewer_id=None) -> List[dict]:
    return [
        {"$match": {"_id": to_object_id(video_id)}},
        {
            "$lookup": {
                "from": LIKES,
                "localField": "_id",
                "foreignField": "video",
                "as": "likes",
            }
        },
        {
            "$lookup": {
                "from": USERS,
                "localField": "owner",
                "foreignField": "_id",
                "as": "owner",
                "pipeline": [
                    {
                        "$lookup": {
                            "from": SUBSCRIPTIONS,
                            "localField": "_id",
                            "foreignField": "channel",
                            "as": "subscribers",
                        }
                    },
                    {
                        "$addFields": {
                            "subscribersCount": {"$size": "$subscribers"},
                            "isSubscribed": membership_flag(viewer_id, "$subscribers.subscriber"),
                        }
                    },
                    {
                        "$project": {
                            "username": 1,
                            "avatar": 1,
                            "subscribersCount": 1,
                            "isSubscribed": 1,
                        }
                    },
                ],
            }
        },
        {
            "$addFields": {
                "likesCount": {"$size": "$likes"},
                "owner": {"$first": "$owner"},
                "isLiked": membership_flag(viewer_id, "$likes.likedBy"),
            }
        },
        {"$project": {field: 1 for field in VIDEO_DETAIL_FIELDS}},
    ]

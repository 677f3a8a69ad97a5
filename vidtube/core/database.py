# vidtube/core/database.py
import logging
import math
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Generator, List, Optional

from bson import ObjectId
from fastapi import Depends
from pymongo import ASCENDING, TEXT, MongoClient, ReturnDocument
from pymongo.database import Database

from vidtube.core.config import settings

logger = logging.getLogger(__name__)

USERS = "users"
VIDEOS = "videos"
LIKES = "likes"
SUBSCRIPTIONS = "subscriptions"

# Поля, которые никогда не отдаем клиенту
PRIVATE_USER_FIELDS = {"password": 0, "refreshToken": 0}

# MongoClient не подключается до первого запроса
client: MongoClient = MongoClient(
    settings.mongodb_url,
    tz_aware=True,
    serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
)


def get_database() -> Database:
    return client[settings.mongodb_db_name]


def init_db(db: Optional[Database] = None):
    """Создает индексы. Вызывается при старте приложения."""
    db = db if db is not None else get_database()
    db[USERS].create_index([("username", ASCENDING)], unique=True)
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[VIDEOS].create_index([("title", TEXT), ("description", TEXT)], name="videos_text")
    db[VIDEOS].create_index([("owner", ASCENDING)])
    db[LIKES].create_index([("video", ASCENDING)])
    db[SUBSCRIPTIONS].create_index([("channel", ASCENDING)])
    logger.info(f"Indexes ensured on database '{db.name}'")


def is_valid_id(value: Any) -> bool:
    return isinstance(value, ObjectId) or (isinstance(value, str) and ObjectId.is_valid(value))


def to_object_id(value: Any) -> ObjectId:
    return value if isinstance(value, ObjectId) else ObjectId(str(value))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_page(docs: List[dict], total: int, page: int, limit: int) -> Dict[str, Any]:
    """Метаданные страницы в формате mongoose-aggregate-paginate."""
    total_pages = math.ceil(total / limit) if total else 0
    has_prev = page > 1
    has_next = page < total_pages
    return {
        "docs": docs,
        "totalDocs": total,
        "limit": limit,
        "page": page,
        "totalPages": total_pages,
        "pagingCounter": (page - 1) * limit + 1,
        "hasPrevPage": has_prev,
        "hasNextPage": has_next,
        "prevPage": page - 1 if has_prev else None,
        "nextPage": page + 1 if has_next else None,
    }


class DocumentStore:
    """Thin wrapper over the Mongo database used by the services.

    Every single-document write is atomic on the server; nothing here spans
    more than one document in a transaction.
    """

    def __init__(self, db: Database):
        self.db = db

    # --- Videos ---

    def find_video(self, video_id) -> Optional[dict]:
        return self.db[VIDEOS].find_one({"_id": to_object_id(video_id)})

    def insert_video(self, doc: dict) -> ObjectId:
        now = utcnow()
        doc = {"views": 0, "createdAt": now, "updatedAt": now, **doc}
        return self.db[VIDEOS].insert_one(doc).inserted_id

    def update_video(self, video_id, fields: dict) -> Optional[dict]:
        return self.db[VIDEOS].find_one_and_update(
            {"_id": to_object_id(video_id)},
            {"$set": {**fields, "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def increment_views(self, video_id) -> Optional[dict]:
        return self.db[VIDEOS].find_one_and_update(
            {"_id": to_object_id(video_id)},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )

    def delete_video(self, video_id) -> Optional[dict]:
        return self.db[VIDEOS].find_one_and_delete({"_id": to_object_id(video_id)})

    def aggregate_videos(self, pipeline: List[dict]) -> List[dict]:
        return list(self.db[VIDEOS].aggregate(pipeline))

    def paginate_videos(self, pipeline: List[dict], page: int, limit: int) -> Dict[str, Any]:
        facet = {
            "$facet": {
                "docs": [{"$skip": (page - 1) * limit}, {"$limit": limit}],
                "total": [{"$count": "count"}],
            }
        }
        result = next(self.db[VIDEOS].aggregate([*pipeline, facet]), None) or {}
        total = result["total"][0]["count"] if result.get("total") else 0
        return build_page(result.get("docs", []), total, page, limit)

    # --- Users ---

    def find_user(self, user_id, include_private: bool = False) -> Optional[dict]:
        projection = None if include_private else PRIVATE_USER_FIELDS
        return self.db[USERS].find_one({"_id": to_object_id(user_id)}, projection)

    def find_user_by_login(self, username: Optional[str] = None, email: Optional[str] = None) -> Optional[dict]:
        conditions = []
        if username:
            conditions.append({"username": username.lower()})
        if email:
            conditions.append({"email": email})
        if not conditions:
            return None
        return self.db[USERS].find_one({"$or": conditions})

    def insert_user(self, doc: dict) -> ObjectId:
        now = utcnow()
        doc = {"watchHistory": [], "refreshToken": None, "createdAt": now, "updatedAt": now, **doc}
        return self.db[USERS].insert_one(doc).inserted_id

    def set_refresh_token(self, user_id, token: Optional[str]) -> None:
        if token is None:
            update = {"$unset": {"refreshToken": 1}}
        else:
            update = {"$set": {"refreshToken": token}}
        self.db[USERS].update_one({"_id": to_object_id(user_id)}, update)

    def push_watch_history(self, user_id, video_id) -> Optional[List[ObjectId]]:
        user = self.db[USERS].find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$push": {"watchHistory": to_object_id(video_id)}},
            projection={"watchHistory": 1},
            return_document=ReturnDocument.AFTER,
        )
        return user["watchHistory"] if user else None

    def pull_from_watch_histories(self, video_id) -> int:
        video_oid = to_object_id(video_id)
        result = self.db[USERS].update_many(
            {"watchHistory": video_oid},
            {"$pull": {"watchHistory": video_oid}},
        )
        return result.modified_count


def get_store() -> Generator[DocumentStore, None, None]:
    yield DocumentStore(get_database())


StoreDep = Annotated[DocumentStore, Depends(get_store)]

# vidtube/models/video.py
from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


class MediaAsset(BaseModel):
    url: str
    public_id: str = Field(..., description="Идентификатор файла в Cloudinary")


class Video(BaseModel):
    """
    Videos collection schema
    Collection name: "videos"
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    duration: float = Field(0, ge=0, description="Длительность видео в секундах")
    videoFile: MediaAsset
    thumbnail: MediaAsset
    owner: ObjectId
    views: int = Field(0, ge=0)
    isPublished: bool = True

    def to_document(self) -> dict:
        return self.model_dump()

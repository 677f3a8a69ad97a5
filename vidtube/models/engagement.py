# vidtube/models/engagement.py
from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


class Like(BaseModel):
    """Collection "likes": the user `likedBy` likes the video `video`."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    video: ObjectId
    likedBy: ObjectId


class Subscription(BaseModel):
    """Collection "subscriptions"."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    channel: ObjectId = Field(..., description="The user id of the channel being subscribed to")
    subscriber: ObjectId = Field(..., description="The user id of the subscriber")

# vidtube/models/user.py
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class User(BaseModel):
    """
    Users collection schema
    Collection name: "users"
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    fullName: str = Field(..., min_length=1)
    avatar: str = Field(..., description="URL аватара")
    coverImage: str = ""
    password: str = Field(..., description="Bcrypt hash")
    watchHistory: List[ObjectId] = Field(default_factory=list)
    refreshToken: Optional[str] = None

    @field_validator("username")
    @classmethod
    def lowercase_username(cls, value: str) -> str:
        return value.lower()

    def to_document(self) -> dict:
        return self.model_dump()

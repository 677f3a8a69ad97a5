# vidtube/schemas/response.py
from typing import Any

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field, model_validator


def to_jsonable(data: Any) -> Any:
    """Приводит документы Mongo к JSON (ObjectId -> str, datetime -> ISO)."""
    return jsonable_encoder(data, custom_encoder={ObjectId: str})


class ApiResponse(BaseModel):
    statusCode: int = 200
    data: Any = None
    message: str = "Success"
    success: bool = Field(True, description="statusCode < 400")

    @model_validator(mode="after")
    def set_success(self):
        self.success = self.statusCode < 400
        self.data = to_jsonable(self.data)
        return self

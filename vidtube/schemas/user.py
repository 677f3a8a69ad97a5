# vidtube/schemas/user.py
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

class LoginRequest(BaseModel):
    username: Optional[str] = Field(None, description="Логин или email - достаточно одного")
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=1)

from pydantic import BaseModel
from typing import Optional


class UserCreate(BaseModel):
    name: str
    email: Optional[str] = None
    picture: Optional[str] = None
    leetcode_username: Optional[str] = None


class UserResponse(BaseModel):
    public_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None
    leetcode_username: Optional[str] = None

    class Config:
        from_attributes = True

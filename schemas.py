"""
Database Schemas for the video sharing backend

Each Pydantic model maps to a MongoDB collection. The collection name is the lowercase of the class name.
Attributes are snake_case in Python and stored camelCase (dump with by_alias=True).

Collections:
- User -> user
- Video -> video
- Comment -> comment
- Like -> like
- Subscription -> subscription
- Playlist -> playlist
"""

from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    def to_mongo(self) -> dict:
        return self.model_dump(by_alias=True)


class Asset(Document):
    url: str
    public_id: str = Field(..., alias="public_id", description="Asset store reference")


class User(Document):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=100)
    avatar: Asset
    cover_image: Optional[Asset] = None
    password: str = Field(..., description="Bcrypt hash")
    refresh_token: Optional[str] = None
    watch_history: List[ObjectId] = Field(default_factory=list)

    @field_validator("username")
    @classmethod
    def lowercase_username(cls, v: str) -> str:
        return v.strip().lower()


class Video(Document):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    video_file: Asset
    thumbnail: Asset
    duration: float = Field(0, ge=0, description="Seconds")
    views: int = 0
    is_published: bool = True
    owner: ObjectId


class Comment(Document):
    content: str = Field(..., min_length=1, max_length=1000)
    video: ObjectId
    owner: ObjectId


class LikeTarget(str, Enum):
    VIDEO = "video"
    COMMENT = "comment"


class Like(Document):
    """A like points at exactly one target: a video or a comment."""
    model_config = ConfigDict(use_enum_values=True)

    target_type: LikeTarget
    target: ObjectId
    liked_by: ObjectId


class Subscription(Document):
    subscriber: ObjectId = Field(..., description="The user who subscribes")
    channel: ObjectId = Field(..., description="The user (channel) being subscribed to")


class Playlist(Document):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    owner: ObjectId
    videos: List[ObjectId] = Field(default_factory=list)


# -------------------- Request bodies --------------------

class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.email and not self.username:
            raise ValueError("email or username is required")
        return self


class CommentRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content cannot be blank")
        return v.strip()


class PlaylistRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)

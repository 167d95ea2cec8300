"""
Pydantic request / response schemas for the API.

Field names on the wire follow the SPA (camelCase), Python attributes stay
snake_case.
"""

from pydantic import BaseModel, Field, PlainSerializer
from typing import Annotated, Optional, List
from datetime import datetime, timezone


def _utc_iso(value: datetime) -> str:
    """Stored times are naive UTC; send them with an explicit `Z`."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


UTCDateTime = Annotated[datetime, PlainSerializer(_utc_iso, return_type=str)]


# ── Auth ─────────────────────────────────────────────────
class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    avatar_color: str = Field(serialization_alias="avatarColor")

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


# ── Chat ─────────────────────────────────────────────────
class HistoryItem(BaseModel):
    role: str
    text: str = ""


class ImageAttachment(BaseModel):
    data: str
    mime_type: str = Field(default="image/png", alias="mimeType")

    class Config:
        populate_by_name = True


class ChatRequest(BaseModel):
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    text: Optional[str] = None
    history: Optional[List[HistoryItem]] = None
    image: Optional[ImageAttachment] = None

    class Config:
        populate_by_name = True


class ChatResponse(BaseModel):
    text: str
    conversation_id: str = Field(serialization_alias="conversationId")


class ImageRequest(BaseModel):
    prompt: Optional[str] = None


class ImageResponse(BaseModel):
    image_url: str = Field(serialization_alias="imageUrl")


# ── Conversations / Messages ─────────────────────────────
class ConversationCreate(BaseModel):
    title: Optional[str] = None


class ConversationUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class ConversationListItem(BaseModel):
    id: str
    title: str
    updated_at: UTCDateTime

    class Config:
        from_attributes = True


class ConversationCreated(BaseModel):
    id: str
    title: str

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    id: str
    conversation_id: str = Field(serialization_alias="conversationId")
    role: str
    text: str
    timestamp: UTCDateTime

    class Config:
        from_attributes = True


# ── Projects ─────────────────────────────────────────────
class ProjectCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    content: Optional[str] = None
    created_at: UTCDateTime = Field(serialization_alias="createdAt")

    class Config:
        from_attributes = True


# ── Tasks ────────────────────────────────────────────────
class TaskCreate(BaseModel):
    title: Optional[str] = None


class TaskUpdate(BaseModel):
    completed: bool


class TaskResponse(BaseModel):
    id: str
    title: str
    completed: bool
    created_at: UTCDateTime = Field(serialization_alias="createdAt")

    class Config:
        from_attributes = True


class SuccessResponse(BaseModel):
    success: bool = True

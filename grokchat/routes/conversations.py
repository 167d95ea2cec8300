"""
Conversation history CRUD endpoints.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from grokchat.models.database import get_db
from grokchat.models.entities import Conversation, Message, User
from grokchat.models.schemas import (
    ConversationCreate, ConversationUpdate, ConversationListItem,
    ConversationCreated, SuccessResponse,
)
from grokchat.services.auth_service import get_current_user

router = APIRouter(prefix="/api/conversations", tags=["conversations"])

DEFAULT_TITLE = "New Chat"


async def get_owned_conversation(db: AsyncSession, conversation_id: str, user_id: str) -> Conversation:
    """Load a conversation of `user_id` or raise 404."""
    result = await db.execute(
        select(Conversation).where(
            Conversation.id == conversation_id,
            Conversation.user_id == user_id,
        )
    )
    conv = result.scalar_one_or_none()
    if not conv:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conv


@router.get("", response_model=list[ConversationListItem])
async def list_conversations(
    q: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Conversation).where(Conversation.user_id == user.id)
    if q:
        query = query.where(Conversation.title.icontains(q, autoescape=True))
    query = query.order_by(Conversation.updated_at.desc())

    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=ConversationCreated)
async def create_conversation(
    req: ConversationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conv = Conversation(user_id=user.id, title=req.title or DEFAULT_TITLE)
    db.add(conv)
    await db.flush()
    return conv


@router.patch("/{conversation_id}", response_model=ConversationCreated)
async def rename_conversation(
    conversation_id: str,
    req: ConversationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conv = await get_owned_conversation(db, conversation_id, user.id)
    conv.title = req.title
    await db.flush()
    return conv


@router.delete("/{conversation_id}", response_model=SuccessResponse)
async def delete_conversation(
    conversation_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.execute(
        delete(Message).where(
            Message.conversation_id == conversation_id,
            Message.user_id == user.id,
        )
    )
    await db.execute(
        delete(Conversation).where(
            Conversation.id == conversation_id,
            Conversation.user_id == user.id,
        )
    )
    logger.info(f"Conversation {conversation_id} deleted by {user.id}")
    return SuccessResponse()

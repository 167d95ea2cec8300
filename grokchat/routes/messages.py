"""
Message history endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from grokchat.models.database import get_db
from grokchat.models.entities import Conversation, Message, User
from grokchat.models.schemas import MessageResponse, SuccessResponse
from grokchat.services.auth_service import get_current_user

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: str = Query(alias="conversationId"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Message)
        .where(Message.user_id == user.id, Message.conversation_id == conversation_id)
        .order_by(Message.timestamp.asc())
    )
    return result.scalars().all()


@router.delete("", response_model=SuccessResponse)
async def delete_all_messages(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Wipe the user's whole chat history, conversations included."""
    await db.execute(delete(Message).where(Message.user_id == user.id))
    await db.execute(delete(Conversation).where(Conversation.user_id == user.id))
    logger.info(f"Chat history cleared for {user.id}")
    return SuccessResponse()

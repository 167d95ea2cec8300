"""
Chat and image generation endpoints, the only routes that reach the model.
"""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from grokchat.models.database import get_db
from grokchat.models.entities import Conversation, Message, User
from grokchat.models.schemas import ChatRequest, ChatResponse, ImageRequest, ImageResponse
from grokchat.services import ai_service
from grokchat.services.auth_service import get_current_user
from grokchat.middleware.rate_limit import limiter, model_call_limit
from grokchat.routes.conversations import get_owned_conversation

router = APIRouter(prefix="/api", tags=["chat"])

IMAGE_PLACEHOLDER = "[Image attached]"


def title_from_text(text: str) -> str:
    """Conversation title derived from the first message."""
    if not text:
        return "Image Upload"
    return text[:30] + "..."


async def _load_history(db: AsyncSession, conversation_id: str, before: datetime) -> list[dict]:
    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id, Message.timestamp < before)
        .order_by(Message.timestamp.asc())
    )
    return [{"role": m.role, "text": m.text} for m in result.scalars().all()]


@router.post("/chat", response_model=ChatResponse)
@limiter.limit(model_call_limit)
async def chat(
    request: Request,
    req: ChatRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    text = (req.text or "").strip()
    if not text and not req.image:
        raise HTTPException(status_code=400, detail="Message text or image is required")

    if req.conversation_id:
        conv = await get_owned_conversation(db, req.conversation_id, user.id)
    else:
        conv = Conversation(user_id=user.id, title=title_from_text(text))
        db.add(conv)
        await db.flush()

    # 1. Persist the user turn before calling out, so it survives a model failure
    user_msg = Message(
        conversation_id=conv.id,
        user_id=user.id,
        role="user",
        text=text or IMAGE_PLACEHOLDER,
    )
    db.add(user_msg)
    conv.updated_at = datetime.utcnow()
    await db.commit()

    # 2. History: what the client holds, else what we stored
    if req.history is not None:
        history = [item.model_dump() for item in req.history]
    else:
        history = await _load_history(db, conv.id, user_msg.timestamp)

    # 3. Ask the model
    image = req.image.model_dump() if req.image else None
    try:
        ai_text = await ai_service.generate_reply(history, text or None, image)
    except ai_service.AIServiceError:
        logger.exception(f"Chat failed for conversation {conv.id}")
        raise HTTPException(status_code=500, detail="Failed to get AI response")

    # 4. Persist the reply
    db.add(Message(conversation_id=conv.id, user_id=user.id, role="ai", text=ai_text))

    logger.info(f"Chat [{conv.id[:8]}]: '{text[:50]}' -> '{ai_text[:50]}'")
    return ChatResponse(text=ai_text, conversation_id=conv.id)


@router.post("/generate-image", response_model=ImageResponse)
@limiter.limit(model_call_limit)
async def generate_image(
    request: Request,
    req: ImageRequest,
    user: User = Depends(get_current_user),
):
    prompt = (req.prompt or "").strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")

    try:
        image_url = await ai_service.generate_image(prompt)
    except ai_service.AIServiceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ai_service.NoImageGenerated as e:
        logger.warning(f"Image generation for {user.id} returned no image")
        raise HTTPException(status_code=500, detail=str(e))
    except ai_service.AIServiceError:
        logger.exception("Image generation failed")
        raise HTTPException(status_code=500, detail="Image generation failed")

    logger.info(f"Image generated for {user.id}: '{prompt[:50]}'")
    return ImageResponse(image_url=image_url)

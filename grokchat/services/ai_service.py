"""
Model provider bridge for chat replies and image generation.

Talks to any OpenAI-compatible endpoint (xAI by default). Without a usable
API key, chat turns are answered by a small offline demo responder so the
app stays usable in local previews; image generation is refused.
"""

import ast
import base64
import operator
import re
from typing import List, Dict, Optional

import httpx
import openai
from loguru import logger

from grokchat.config import settings

client = None


class AIServiceError(Exception):
    """The model provider failed or returned something unusable."""


class AIServiceUnavailable(AIServiceError):
    """No provider is configured."""


class NoImageGenerated(AIServiceError):
    """The image endpoint answered without any image payload."""


# ── Key validation ────────────────────────────────────────
def _is_real_api_key(key: str) -> bool:
    """Return True only if the key looks like a genuine provider key."""
    if not key:
        return False
    # Placeholder keys from .env templates
    if "your" in key.lower() or "change-me" in key.lower():
        return False
    return len(key) >= 20


def _get_client():
    global client
    if client is None:
        if not _is_real_api_key(settings.OPENAI_API_KEY):
            return None
        client = openai.AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL or None,
        )
    return client


def is_configured() -> bool:
    return _get_client() is not None


# ─────────────────────────────────────────────────────────
#  MESSAGE FORMATTING
# ─────────────────────────────────────────────────────────

def to_data_url(mime_type: str, data: str) -> str:
    return f"data:{mime_type};base64,{data}"


def format_history(history: List[Dict[str, str]], limit: Optional[int] = None) -> List[Dict[str, str]]:
    """
    Convert stored / client turns (`role` user|ai, `text`) into provider
    messages. Empty turns are dropped and only the most recent `limit`
    turns are kept.
    """
    limit = settings.CHAT_HISTORY_LIMIT if limit is None else limit
    formatted = []
    for turn in history:
        text = (turn.get("text") or "").strip()
        if not text:
            continue
        role = "user" if turn.get("role") == "user" else "assistant"
        formatted.append({"role": role, "content": text})
    if limit <= 0:
        return []
    return formatted[-limit:]


def build_user_content(text: Optional[str], image: Optional[Dict[str, str]] = None):
    """Plain string for text-only turns, content parts when an image is attached."""
    if not image:
        return text or ""

    parts = []
    if text:
        parts.append({"type": "text", "text": text})
    parts.append({
        "type": "image_url",
        "image_url": {"url": to_data_url(image["mime_type"], image["data"])},
    })
    return parts


def build_messages(
    history: List[Dict[str, str]],
    text: Optional[str],
    image: Optional[Dict[str, str]] = None,
) -> List[Dict]:
    messages = [{"role": "system", "content": settings.SYSTEM_PROMPT}]
    messages.extend(format_history(history))
    messages.append({"role": "user", "content": build_user_content(text, image)})
    return messages


# ─────────────────────────────────────────────────────────
#  OFFLINE DEMO RESPONDER
# ─────────────────────────────────────────────────────────

_SAFE_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
    ast.Mod: operator.mod,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

# "-" needs spaces on both sides so dates like 2024-01-01 are left alone
_MATH_PATTERN = re.compile(
    r"(?<![\d.\-\/])\d+(?:\.\d+)?"
    r"(?:(?:\s*[\+\*\/\%\^]\s*|\s+-\s+)\d+(?:\.\d+)?)+"
    r"(?![\d.\-\/])"
)

MAX_RESULT_DIGITS = 200

_GREETING_PATTERN = re.compile(r"\b(hi|hello|hey|yo|good\s+(morning|afternoon|evening))\b", re.IGNORECASE)


def _safe_eval(node):
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.BinOp):
        op_fn = _SAFE_OPS.get(type(node.op))
        if op_fn is None:
            raise ValueError("Unsupported op")
        left, right = _safe_eval(node.left), _safe_eval(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > 100:
            raise ValueError("Exponent too large")
        return op_fn(left, right)
    if isinstance(node, ast.UnaryOp):
        op_fn = _SAFE_OPS.get(type(node.op))
        if op_fn is None:
            raise ValueError("Unsupported unary op")
        return op_fn(_safe_eval(node.operand))
    raise ValueError("Unsupported node")


def _try_math(text: str) -> Optional[str]:
    match = _MATH_PATTERN.search(text)
    if not match:
        return None
    expr = match.group(0)
    try:
        result = _safe_eval(ast.parse(expr.replace("^", "**"), mode="eval").body)
        if isinstance(result, float) and result.is_integer():
            result = int(result)
        elif isinstance(result, float):
            result = round(result, 6)
        if isinstance(result, int) and len(str(abs(result))) > MAX_RESULT_DIGITS:
            return None
        return f"{expr} = **{result}**"
    except (ValueError, SyntaxError, ZeroDivisionError, OverflowError):
        return None


def demo_reply(text: Optional[str], has_image: bool = False) -> str:
    text = (text or "").strip()

    answer = _try_math(text)
    if answer:
        return answer
    if _GREETING_PATTERN.search(text):
        return "Hey there! I'm Grok, running in offline demo mode. Ask me anything, or try some arithmetic like `12 * 7`."
    if has_image and not text:
        return "Nice picture! I can't look at images in offline demo mode. Configure an API key and try again."
    return (
        "I'm running in offline demo mode, so my wit is on a budget today. "
        "Set OPENAI_API_KEY to connect me to the real model."
    )


# ─────────────────────────────────────────────────────────
#  CHAT
# ─────────────────────────────────────────────────────────

async def generate_reply(
    history: List[Dict[str, str]],
    text: Optional[str],
    image: Optional[Dict[str, str]] = None,
) -> str:
    """
    Send the prior turns plus the new user turn to the chat model and return
    the reply text. Raises AIServiceError on provider failure.
    """
    ai_client = _get_client()

    if ai_client is None:
        response = demo_reply(text, has_image=image is not None)
        logger.info(f"[DEMO] '{(text or '')[:40]}' -> '{response[:60]}'")
        return response

    messages = build_messages(history, text, image)
    try:
        response = await ai_client.chat.completions.create(
            model=settings.CHAT_MODEL,
            messages=messages,
            temperature=settings.CHAT_TEMPERATURE,
            max_tokens=settings.CHAT_MAX_TOKENS,
        )
    except openai.OpenAIError as e:
        logger.error(f"Chat model error: {e}")
        raise AIServiceError(str(e)) from e

    if not response.choices or not response.choices[0].message.content:
        raise AIServiceError("Empty response from chat model")
    return response.choices[0].message.content.strip()


# ─────────────────────────────────────────────────────────
#  IMAGES
# ─────────────────────────────────────────────────────────

def _sniff_image_mime(b64_data: str) -> str:
    if b64_data.startswith("iVBOR"):
        return "image/png"
    if b64_data.startswith("/9j/"):
        return "image/jpeg"
    if b64_data.startswith("UklGR"):
        return "image/webp"
    if b64_data.startswith("R0lGOD"):
        return "image/gif"
    return "image/png"


async def _download_as_data_url(url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> str:
    async with httpx.AsyncClient(timeout=30.0, transport=transport) as http:
        response = await http.get(url)
        response.raise_for_status()
    mime_type = response.headers.get("content-type", "image/png").split(";")[0]
    data = base64.b64encode(response.content).decode("utf-8")
    logger.info(f"Downloaded generated image ({len(response.content)} bytes)")
    return to_data_url(mime_type, data)


async def generate_image(prompt: str) -> str:
    """Generate one image for `prompt` and return it as a data URL."""
    ai_client = _get_client()
    if ai_client is None:
        raise AIServiceUnavailable("Image generation is not configured")

    try:
        response = await ai_client.images.generate(
            model=settings.IMAGE_MODEL,
            prompt=prompt,
            n=1,
            response_format="b64_json",
        )
    except openai.OpenAIError as e:
        logger.error(f"Image model error: {e}")
        raise AIServiceError(str(e)) from e

    for item in response.data or []:
        if getattr(item, "b64_json", None):
            return to_data_url(_sniff_image_mime(item.b64_json), item.b64_json)
        if getattr(item, "url", None):
            try:
                return await _download_as_data_url(item.url)
            except httpx.HTTPError as e:
                logger.error(f"Image download error: {e}")
                raise AIServiceError(str(e)) from e

    raise NoImageGenerated("No image generated in response")

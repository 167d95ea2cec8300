"""Tests for the model provider bridge."""

import base64
from functools import partial
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from grokchat.config import settings
from grokchat.services import ai_service
from grokchat.services.ai_service import (
    AIServiceError,
    AIServiceUnavailable,
    NoImageGenerated,
    build_messages,
    build_user_content,
    demo_reply,
    format_history,
)


class TestFormatHistory:
    def test_roles_are_mapped(self):
        history = [
            {"role": "user", "text": "hi"},
            {"role": "ai", "text": "hello"},
        ]
        assert format_history(history) == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]

    def test_empty_turns_dropped(self):
        history = [{"role": "user", "text": "  "}, {"role": "ai", "text": "ok"}]
        assert format_history(history) == [{"role": "assistant", "content": "ok"}]

    def test_only_most_recent_turns_kept(self):
        history = [{"role": "user", "text": str(i)} for i in range(10)]
        kept = format_history(history, limit=3)
        assert [m["content"] for m in kept] == ["7", "8", "9"]

    def test_zero_limit_keeps_nothing(self):
        assert format_history([{"role": "user", "text": "x"}], limit=0) == []


class TestUserContent:
    def test_text_only_is_a_string(self):
        assert build_user_content("hello") == "hello"

    def test_image_becomes_data_url_part(self):
        parts = build_user_content("what is this?", {"data": "QUJD", "mime_type": "image/jpeg"})
        assert parts[0] == {"type": "text", "text": "what is this?"}
        assert parts[1]["image_url"]["url"] == "data:image/jpeg;base64,QUJD"

    def test_image_without_text(self):
        parts = build_user_content(None, {"data": "QUJD", "mime_type": "image/png"})
        assert len(parts) == 1
        assert parts[0]["type"] == "image_url"

    def test_system_prompt_leads(self):
        messages = build_messages([{"role": "ai", "text": "earlier"}], "now")
        assert messages[0] == {"role": "system", "content": settings.SYSTEM_PROMPT}
        assert messages[-1] == {"role": "user", "content": "now"}
        assert len(messages) == 3


class TestDemoReply:
    def test_arithmetic(self):
        assert demo_reply("what's 12 * 7?") == "12 * 7 = **84**"

    def test_division_by_zero_falls_through(self):
        assert "demo mode" in demo_reply("1 / 0")

    def test_greeting(self):
        assert "Grok" in demo_reply("hello there")

    def test_image_only(self):
        assert "picture" in demo_reply("", has_image=True)

    def test_oversized_result_falls_through(self):
        huge = " * ".join(["99999^100"] * 9)
        assert "demo mode" in demo_reply(huge)

    def test_large_exponent_refused(self):
        assert "demo mode" in demo_reply("9 ^ 999999")

    def test_dates_are_not_arithmetic(self):
        assert "demo mode" in demo_reply("see you on 2024-01-01")
        assert "demo mode" in demo_reply("phone 555-1234")

    def test_spaced_subtraction(self):
        assert demo_reply("10 - 4") == "10 - 4 = **6**"


class TestGenerateReply:
    @pytest.mark.asyncio
    async def test_unconfigured_uses_demo(self):
        assert await ai_service.generate_reply([], "2 + 2") == "2 + 2 = **4**"

    @pytest.mark.asyncio
    async def test_forwards_history_to_model(self, mock_ai):
        reply = await ai_service.generate_reply([{"role": "user", "text": "before"}], "now")

        assert reply == "Hello from the model"
        kwargs = mock_ai.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == settings.CHAT_MODEL
        assert [m["role"] for m in kwargs["messages"]] == ["system", "user", "user"]

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self, mock_ai):
        mock_ai.chat.completions.create.side_effect = openai.OpenAIError("boom")
        with pytest.raises(AIServiceError):
            await ai_service.generate_reply([], "hi")

    @pytest.mark.asyncio
    async def test_empty_choice_is_an_error(self, mock_ai):
        mock_ai.chat.completions.create.return_value = SimpleNamespace(choices=[])
        with pytest.raises(AIServiceError):
            await ai_service.generate_reply([], "hi")


class TestGenerateImage:
    @pytest.mark.asyncio
    async def test_unconfigured(self):
        with pytest.raises(AIServiceUnavailable):
            await ai_service.generate_image("a cat")

    @pytest.mark.asyncio
    async def test_inline_jpeg(self, mock_ai):
        mock_ai.images.generate.return_value = SimpleNamespace(
            data=[SimpleNamespace(b64_json="/9j/AAAA", url=None)]
        )
        assert await ai_service.generate_image("a cat") == "data:image/jpeg;base64,/9j/AAAA"

    @pytest.mark.asyncio
    async def test_hosted_url_is_downloaded(self, mock_ai, monkeypatch):
        mock_ai.images.generate.return_value = SimpleNamespace(
            data=[SimpleNamespace(b64_json=None, url="https://img.example/cat.png")]
        )
        download = AsyncMock(return_value="data:image/png;base64,iVBOR")
        monkeypatch.setattr(ai_service, "_download_as_data_url", download)

        assert await ai_service.generate_image("a cat") == "data:image/png;base64,iVBOR"
        download.assert_awaited_once_with("https://img.example/cat.png")

    @pytest.mark.asyncio
    async def test_no_image_in_response(self, mock_ai):
        mock_ai.images.generate.return_value = SimpleNamespace(data=[])
        with pytest.raises(NoImageGenerated):
            await ai_service.generate_image("a cat")


class TestImageDownload:
    @pytest.mark.asyncio
    async def test_hosted_image_inlined_with_its_content_type(self):
        payload = b"\xff\xd8\xff\xe0fake-jpeg"

        def handler(request):
            assert request.url == "https://img.example/cat.jpg"
            return httpx.Response(200, content=payload, headers={"content-type": "image/jpeg; charset=binary"})

        data_url = await ai_service._download_as_data_url(
            "https://img.example/cat.jpg", transport=httpx.MockTransport(handler)
        )

        assert data_url == "data:image/jpeg;base64," + base64.b64encode(payload).decode()

    @pytest.mark.asyncio
    async def test_missing_content_type_defaults_to_png(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"\x89PNG"))
        data_url = await ai_service._download_as_data_url("https://img.example/x", transport=transport)
        assert data_url.startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_failed_download_becomes_service_error(self, mock_ai, monkeypatch):
        mock_ai.images.generate.return_value = SimpleNamespace(
            data=[SimpleNamespace(b64_json=None, url="https://img.example/gone.png")]
        )
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        monkeypatch.setattr(
            ai_service,
            "_download_as_data_url",
            partial(ai_service._download_as_data_url, transport=transport),
        )

        with pytest.raises(AIServiceError):
            await ai_service.generate_image("a cat")

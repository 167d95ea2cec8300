"""
Application configuration — reads all settings from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "Grok Chat"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    CORS_ORIGINS: str = "*"
    STATIC_DIR: str = "./dist"

    # ── Database ─────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./grokchat.db"

    # ── Model provider (OpenAI-compatible) ───────────────
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.x.ai/v1"
    CHAT_MODEL: str = "grok-3-mini"
    IMAGE_MODEL: str = "grok-2-image"
    SYSTEM_PROMPT: str = (
        "You are Grok by xAI: helpful, witty, truthful, "
        "maximum truth-seeking AI built by xAI."
    )
    CHAT_HISTORY_LIMIT: int = 20
    CHAT_TEMPERATURE: float = 0.7
    CHAT_MAX_TOKENS: int = 1024

    # ── Rate Limiting ────────────────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 30

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

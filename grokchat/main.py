"""
Grok Chat — FastAPI entry point.
"""

import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger

from grokchat.config import settings
from grokchat.models.database import init_db, close_db
from grokchat.services import ai_service
from grokchat.middleware.error_handler import global_exception_handler, register_exception_handlers
from grokchat.middleware.logging_middleware import logging_middleware
from grokchat.middleware.rate_limit import limiter

# ── Routes ───────────────────────────────────────────────
from grokchat.routes.auth import router as auth_router
from grokchat.routes.chat import router as chat_router
from grokchat.routes.conversations import router as conversations_router
from grokchat.routes.messages import router as messages_router
from grokchat.routes.projects import router as projects_router
from grokchat.routes.tasks import router as tasks_router


class SPAStaticFiles(StaticFiles):
    """Static files that fall back to index.html for client-side routes."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404 or path.startswith("api"):
                raise
            return await super().get_response("index.html", scope)


# ── Lifespan ─────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()
    if ai_service.is_configured():
        logger.info(f"Model provider: {settings.OPENAI_BASE_URL} ({settings.CHAT_MODEL})")
    else:
        logger.warning("OPENAI_API_KEY not set, chat runs in offline demo mode")
    yield
    await close_db()
    logger.info("Shutting down")


# ── App ──────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Chat assistant API: accounts, conversations, projects, tasks, text and image generation",
    lifespan=lifespan,
)

# ── Rate Limiter ─────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

# ── CORS ─────────────────────────────────────────────────
origins = settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Custom Middleware ────────────────────────────────────
app.middleware("http")(global_exception_handler)
app.middleware("http")(logging_middleware)

# ── Register Routers ────────────────────────────────────
app.include_router(auth_router)
app.include_router(chat_router)
app.include_router(conversations_router)
app.include_router(messages_router)
app.include_router(projects_router)
app.include_router(tasks_router)


# ── Health Check ─────────────────────────────────────────
@app.get("/api/health", tags=["health"])
async def health():
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "model_configured": ai_service.is_configured(),
    }


# ── Single-page UI ───────────────────────────────────────
def mount_spa(target: FastAPI, directory: str) -> bool:
    """Serve a built UI bundle at `/`; must run after the API routers are included."""
    if not os.path.isdir(directory):
        return False
    target.mount("/", SPAStaticFiles(directory=directory, html=True), name="spa")
    logger.info(f"Serving UI from {directory}")
    return True


mount_spa(app, settings.STATIC_DIR)


# ── Run ──────────────────────────────────────────────────
def run():
    import uvicorn
    uvicorn.run(
        "grokchat.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
    )


if __name__ == "__main__":
    run()

"""
Request / response logging middleware.

API calls are logged at INFO; static SPA assets only at DEBUG so page loads
don't flood the log.
"""

import time
from fastapi import Request
from loguru import logger


async def logging_middleware(request: Request, call_next):
    path = request.url.path
    level = "INFO" if path.startswith("/api") else "DEBUG"
    client = request.client.host if request.client else "-"

    start = time.perf_counter()
    logger.log(level, f"→ {request.method} {path} from {client}")

    response = await call_next(request)

    elapsed = round((time.perf_counter() - start) * 1000, 2)
    logger.log(level, f"← {request.method} {path} [{response.status_code}] {elapsed}ms")
    response.headers["X-Response-Time-Ms"] = str(elapsed)

    return response

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette import status
from slowapi.errors import RateLimitExceeded

from gateway.utils.logging import logger

class ForbiddenOriginError(HTTPException):
    def __init__(self, detail="Forbidden origin"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

# ---- Exception handlers (registered in main.py) ----
async def handle_http_exception(request: Request, exc: HTTPException):
    logger.warning(f"HTTPException {exc.status_code} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.detail},
    )

async def handle_validation_error(request: Request, exc: RequestValidationError | ValidationError):
    logger.warning(f"ValidationError on {request.url.path}")
    return JSONResponse(
        status_code=422,
        content={"ok": False, "error": "validation_error", "details": exc.errors()},
    )

async def handle_rate_limit(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limited on {request.url.path}")
    return JSONResponse(status_code=429, content={"ok": False, "error": "rate_limited"})

async def handle_unhandled(request: Request, exc: Exception):
    logger.error(f"Unhandled error: {type(exc).__name__}", exc_info=True)
    return JSONResponse(status_code=500, content={"ok": False, "error": "internal_error"})

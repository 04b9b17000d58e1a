from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field

from gateway.config import settings
from gateway.security.origin_check import check_browser_origin
from gateway.utils.logging import logger
from gateway.utils.origin_guard import enforce_origin, get_settings, verify_websocket_origin
from gateway.utils.rate_limit import limiter
from gateway.utils.response import success

router = APIRouter(prefix="/gateway", tags=["gateway"])

class OriginCheckRequest(BaseModel):
    origin: str | None = Field(default=None, max_length=2048)
    host: str | None = Field(default=None, max_length=1024)

@router.get("/info", dependencies=[Depends(enforce_origin)])
async def info(request: Request):
    cfg = get_settings(request)
    return success({
        "app": cfg.APP_NAME,
        "env": cfg.APP_ENV,
        "port": cfg.APP_PORT,
        "trusted_origins": len(cfg.ALLOW_ORIGINS),
    })

@router.post("/origin/check", dependencies=[Depends(enforce_origin)])
@limiter.limit(f"{settings.RATE_ORIGIN_CHECK_PER_MIN}/minute")
async def origin_check(request: Request, payload: OriginCheckRequest):
    """Evaluate an origin/host pair against this gateway's configuration."""
    cfg = get_settings(request)
    verdict = check_browser_origin(
        request_host=payload.host,
        origin=payload.origin,
        allowed_origins=cfg.ALLOW_ORIGINS,
        gateway_port=cfg.gateway_port,
    )
    return success({"allowed": verdict.ok, "reason": verdict.reason})

@router.websocket("/ws")
async def control_socket(websocket: WebSocket):
    verdict = verify_websocket_origin(websocket)
    if not verdict.ok:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=verdict.reason)
        return

    await websocket.accept()
    await websocket.send_json({"type": "hello", "app": get_settings(websocket).APP_NAME})
    try:
        while True:
            try:
                data = await websocket.receive_json()
            except (ValueError, KeyError, TypeError):
                # Non-JSON text or a binary frame.
                logger.warning("Control socket closed: frame was not JSON text")
                await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA, reason="expected JSON text frame")
                return
            await websocket.send_json({"type": "echo", "data": data})
    except WebSocketDisconnect:
        logger.info("Control socket closed")

from fastapi import Request, WebSocket
from starlette.requests import HTTPConnection

from gateway.config import Settings, settings as default_settings
from gateway.security.origin_check import Denied, Verdict, check_browser_origin
from gateway.utils.errors import ForbiddenOriginError
from gateway.utils.logging import log_origin_denied


def get_settings(conn: HTTPConnection) -> Settings:
    return getattr(conn.app.state, "settings", None) or default_settings


def evaluate_origin(conn: HTTPConnection, origin: str | None) -> Verdict:
    cfg = get_settings(conn)
    host = conn.headers.get("host")
    verdict = check_browser_origin(
        request_host=host,
        origin=origin,
        allowed_origins=cfg.ALLOW_ORIGINS,
        gateway_port=cfg.gateway_port,
    )
    if isinstance(verdict, Denied):
        log_origin_denied(
            verdict.reason,
            origin=origin,
            host=host,
            path=conn.url.path,
            channel=conn.scope["type"],
        )
    return verdict


async def enforce_origin(request: Request):
    """Dependency: reject browser requests from untrusted origins.

    Requests without an Origin header come from non-browser clients and pass.
    """
    origin = request.headers.get("origin")
    if origin is None:
        return
    verdict = evaluate_origin(request, origin)
    if not verdict.ok:
        raise ForbiddenOriginError(verdict.reason)


def verify_websocket_origin(websocket: WebSocket) -> Verdict:
    # Browsers always send Origin on a WebSocket handshake, so it is required here.
    return evaluate_origin(websocket, websocket.headers.get("origin"))

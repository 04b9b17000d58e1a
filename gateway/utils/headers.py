from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        resp: Response = await call_next(request)
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("Permissions-Policy", "microphone=(), camera=()")
        # Verdicts depend on the Origin header; keep caches from mixing them up.
        vary = resp.headers.get("Vary")
        if not vary:
            resp.headers["Vary"] = "Origin"
        elif "origin" not in vary.lower():
            resp.headers["Vary"] = f"{vary}, Origin"
        return resp

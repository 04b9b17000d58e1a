import logging
import sys
from contextvars import ContextVar

from gateway.config import settings

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get() or "-"
        return True

def get_logger(name: str = "gateway", level: str | None = None):
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel((level or settings.LOG_LEVEL).upper())
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s %(name)s req=%(request_id)s: %(message)s'
        )
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        logger.addHandler(handler)
        logger.propagate = False
    return logger

logger = get_logger()

def log_origin_denied(reason: str, *, origin: str | None, host: str | None, path: str, channel: str = "http"):
    """One line per rejected browser origin, keyed by the verdict reason.

    The raw header values are attached to the record as ``origin``,
    ``request_host`` and ``origin_reason`` for handlers that ship structured logs.
    """
    logger.warning(
        "origin denied: reason=%r channel=%s origin=%r host=%r path=%s",
        reason, channel, origin, host, path,
        extra={"origin_reason": reason, "origin": origin, "request_host": host},
    )

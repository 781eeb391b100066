import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from .config import settings


logger = logging.getLogger("carousel_studio")

_SENSITIVE_KEYS = {"token", "secret", "password", "authorization", "cookie"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if any(s in str(k).lower() for s in _SENSITIVE_KEYS):
                out[k] = "<redacted>"
            else:
                out[k] = _redact(v)
        return out
    if isinstance(obj, list):
        return [_redact(x) for x in obj]
    return obj


def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one JSON line per event, e.g. ``{"ts": ..., "event": "job.created", ...}``."""
    if not logger.isEnabledFor(level):
        return
    payload = {"ts": _now_iso(), "event": event, **fields}
    try:
        line = json.dumps(_redact(payload), ensure_ascii=False)
    except (TypeError, ValueError):
        safe = {k: (v if isinstance(v, (int, float, bool)) or v is None else str(v)) for k, v in payload.items()}
        line = json.dumps(_redact(safe), ensure_ascii=False)
    logger.log(level, line)


class _PollAccessLogFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if '"GET /api/jobs/' in message:
            return False
        return True


def configure_logging() -> None:
    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(levelname)s [%(name)s] %(message)s")
    logger.setLevel(level)

    access_logger = logging.getLogger("uvicorn.access")
    if settings.SUPPRESS_POLL_ACCESS_LOGS and not any(
        isinstance(f, _PollAccessLogFilter) for f in access_logger.filters
    ):
        access_logger.addFilter(_PollAccessLogFilter())

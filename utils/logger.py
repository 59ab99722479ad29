"""
Logger access plus the redaction and access-log helpers used around requests.
"""

import logging
from typing import Any
from starlette.requests import Request

REDACTED = "***REDACTED***"

# Substrings of keys whose values must never reach the log files.
# Delivery addresses and phone numbers are customer PII.
SENSITIVE_FIELDS = (
    'password', 'token', 'secret', 'authorization', 'phone',
    'delivery_address', 'deliveryaddress', 'card', 'cvv', 'upi'
)


def get_logger(name: str) -> logging.Logger:
    """``logger = get_logger(__name__)`` at module top."""
    return logging.getLogger(name)


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_FIELDS)


def _mask(key: str, value: Any) -> str:
    # Tokens keep a short prefix so one request can still be correlated
    if 'token' in key.lower() and isinstance(value, str) and len(value) > 8:
        return f"{value[:8]}..."
    return REDACTED


def sanitize_log_data(data: dict[str, Any]) -> dict[str, Any]:
    """
    Copy of ``data`` safe to log: sensitive keys masked, nested dicts and
    lists of dicts cleaned the same way. The input is not modified.
    """
    clean = {}
    for key, value in data.items():
        if _is_sensitive(key):
            clean[key] = _mask(key, value)
        elif isinstance(value, dict):
            clean[key] = sanitize_log_data(value)
        elif isinstance(value, list):
            clean[key] = [sanitize_log_data(v) if isinstance(v, dict) else v for v in value]
        else:
            clean[key] = value
    return clean


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def log_request(logger: logging.Logger, request: Request, status_code: int, duration_ms: float,
                extra: dict[str, Any] | None = None):
    """
    Access-log line for one served request: 5xx at ERROR, 4xx at WARNING,
    the rest at INFO. ``extra`` is sanitized before it is attached.
    """
    client_ip = request.client.host if request.client else "unknown"
    fields = {
        "http_method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
        "client_ip": client_ip,
    }
    if extra:
        fields.update(sanitize_log_data(extra))

    logger.log(
        _level_for(status_code),
        f'{client_ip} "{request.method} {request.url.path}" {status_code} {fields["duration_ms"]}ms',
        extra=fields
    )

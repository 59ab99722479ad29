"""
Middleware package exports.
"""

from middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from middleware.rate_limiter import limiter, get_user_id

__all__ = ["REQUEST_ID_HEADER", "RequestIDMiddleware", "limiter", "get_user_id"]

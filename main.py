import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

import models  # registers every table on Base before the first session
from core.config import settings
from core.error_handlers import register_error_handlers
from core.logging_config import setup_logging, get_logger
from middleware import RequestIDMiddleware, limiter
from routers import delivery, orders, promos, reviews
from utils.logger import log_request

setup_logging(log_level=settings.LOG_LEVEL, log_dir=settings.LOG_DIR)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Marketplace API started", extra={"event": "startup", "env": settings.ENV})
    yield
    logger.info("Marketplace API stopping", extra={"event": "shutdown"})


app = FastAPI(
    title="Grocery Marketplace Fulfillment API",
    description="Order placement, fulfillment and delivery for a multi-vendor grocery marketplace",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """One structured access-log line per request, level chosen by status code."""
    started = time.perf_counter()
    response = await call_next(request)

    log_request(logger, request, response.status_code, (time.perf_counter() - started) * 1000)
    return response


# Outermost, so the access log above already sees the request id
app.add_middleware(RequestIDMiddleware)

register_error_handlers(app)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(orders.router)
app.include_router(delivery.router)
app.include_router(promos.router)
app.include_router(reviews.router)


@app.get("/health")
async def health_check():
    logger.debug("Health check requested")
    return {"status": "Healthy"}

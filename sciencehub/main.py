from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from sciencehub.api.v1.router import router as v1_router
from sciencehub.core.config import settings
from sciencehub.core.logging import configure_logging
from sciencehub.db import create_schema
from sciencehub.middleware.rate_limit import RateLimitMiddleware
from sciencehub.middleware.request_id import RequestIdMiddleware
from sciencehub.middleware.security_headers import SecurityHeadersMiddleware

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Local runs have no migration tooling, so tables are created on boot
    if settings.env == "local":
        create_schema()
    logger.info("app_started", env=settings.env)
    yield


app = FastAPI(title="Science Hub API", lifespan=lifespan)

# Starlette runs the last added middleware first. Request id and security
# headers wrap everything, rate limiting sits closest to the routes.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "Science Hub API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(v1_router, prefix="/v1")

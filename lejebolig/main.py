# Application entrypoint: configures middleware, startup routines, error mapping and API routers.
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .db import Base, engine, is_sqlite
from .errors import ServiceError
from .routes.auth import router as auth_router
from .routes.favorites import router as favorites_router
from .routes.messages import router as messages_router
from .routes.properties import router as properties_router

logger = logging.getLogger("lejebolig")
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())


# Parse CORS origins from a comma-separated env var.
# Note: '*' cannot be used with allow_credentials=True; we fall back to explicit localhost origins for dev.
def _parse_cors_origins(env_value: str | None) -> list[str]:
    default_dev_origins = [
        "http://localhost:5000",
        "http://127.0.0.1:5000",
        "http://localhost:5173",
    ]

    if not env_value:
        return default_dev_origins

    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    if "*" in origins:
        return default_dev_origins

    return origins


@asynccontextmanager
async def lifespan(app: FastAPI):
    # For local SQLite, auto-create tables; production DBs rely on Alembic migrations.
    if is_sqlite():
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="LejeBolig API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_parse_cors_origins(os.getenv("CORS_ORIGINS")),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Never leak driver/SQL text to clients
    logger.error("storage.error", exc_info=exc, extra={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Simple liveness endpoint for container orchestrators and uptime checks
@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


# Mount application routers under /api
app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(properties_router, prefix="/api", tags=["properties"])
app.include_router(favorites_router, prefix="/api", tags=["favorites"])
app.include_router(messages_router, prefix="/api", tags=["messages"])

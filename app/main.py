import logging
import threading

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import OperationalError

from .core.config import CORS_ORIGINS, LOG_LEVEL
from .core.errors import CompletionError
from .db import Base, engine
from .migrations import ensure_schema
from .routes import completion_logs

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Completion Progress API", version="0.1.0")

_BASE_SCHEMA_LOCK = threading.Lock()
_BASE_SCHEMA_READY = False


def _ensure_base_schema() -> None:
    global _BASE_SCHEMA_READY
    if _BASE_SCHEMA_READY:
        return
    with _BASE_SCHEMA_LOCK:
        if _BASE_SCHEMA_READY:
            return
        try:
            Base.metadata.create_all(bind=engine)
        except OperationalError as exc:
            # SQLite schema init may race when several workers start together.
            if "already exists" not in str(exc).lower():
                raise
        _BASE_SCHEMA_READY = True


def _cors_headers(request: Request) -> dict[str, str]:
    origin = request.headers.get("origin", "")
    if not origin or ("*" not in CORS_ORIGINS and origin not in CORS_ORIGINS):
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Adds CORS headers to HTTP errors so browsers can read them."""
    headers = dict(exc.headers or {})
    headers.update(_cors_headers(request))
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.exception_handler(CompletionError)
async def completion_error_handler(request: Request, exc: CompletionError):
    logger.info(
        "completion request rejected %s %s: %s",
        request.method,
        request.url.path,
        exc.to_dict(),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=_cors_headers(request),
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    _ensure_base_schema()
    applied = ensure_schema()
    if applied:
        logger.info("startup schema migration applied %d statement(s)", len(applied))


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.head("/health")
def health_check_head():
    return Response(status_code=200)


app.include_router(completion_logs.router, prefix="/games", tags=["completion-logs"])

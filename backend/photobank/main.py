"""FastAPI app: CORS, security headers, error mapping, routers."""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from photobank.core.config import get_settings
from photobank.core.deps import require_metrics_access
from photobank.core.errors import PhotobankError
from photobank.core.metrics import get_metrics
from photobank.core.request_logging import RequestLoggingMiddleware
from photobank.api.images import router as images_router
from photobank.api.schemas import ErrorBody
from photobank.api.users import router as users_router
from photobank.services.image_transform import configure_decoder_limits

logger = logging.getLogger(__name__)

settings = get_settings()
if settings.log_json:
    for h in logging.getLogger("photobank.request").handlers[:]:
        logging.getLogger("photobank.request").removeHandler(h)
    h = logging.StreamHandler()
    h.setFormatter(logging.Formatter("%(message)s"))
    logging.getLogger("photobank.request").addHandler(h)
    logging.getLogger("photobank.request").setLevel(logging.INFO)

configure_decoder_limits(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from photobank.services.storage import build_storage_context
    ctx = build_storage_context(settings)
    for backend in (ctx.images, ctx.avatars):
        backend.root.mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"],
)


@app.middleware("http")
async def security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Content-Security-Policy"] = "default-src 'self'; frame-ancestors 'none';"
    return response


def _error(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content=ErrorBody(code=code, message=message).model_dump())


@app.exception_handler(PhotobankError)
async def photobank_error_handler(request: Request, exc: PhotobankError):
    if exc.status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code, exc_info=exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    return _error(exc.status, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(x) for x in first.get("loc", ()))
    message = f"{loc}: {first.get('msg', 'invalid request')}" if loc else "Invalid request"
    return _error(400, "validation_error", message)


app.include_router(images_router)
app.include_router(users_router)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/healthz")
async def healthz():
    """Liveness: no DB."""
    return {"status": "ok"}


@app.get("/readyz")
async def readyz():
    """Readiness: light DB check."""
    from sqlalchemy import text
    from photobank.db.session import engine
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception:
        logger.exception("Readiness check failed")
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "detail": "database unreachable"},
        )


@app.get("/metrics", response_class=Response)
async def metrics(_: None = Depends(require_metrics_access)):
    """Prometheus metrics. Set METRICS_SECRET to require the X-Metrics-Secret header."""
    body, content_type = get_metrics()
    return Response(content=body, media_type=content_type)

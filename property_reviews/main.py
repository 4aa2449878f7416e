import time
import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import router as api_router
from .config import CORS_ORIGINS, is_development
from .constants import TRACE_HEADER
from .database import engine
from .exceptions import ReviewsError
from .logging_utils import configure_logging, get_request_logger, new_trace_id
from .metadata import SeedRun  # noqa: F401  (registers the seed_runs table)
from .models import Base as ModelsBase

configure_logging()

# Ensure tables exist at startup (safe for SQLite/PoC)
ModelsBase.metadata.create_all(bind=engine)

app = FastAPI(title="Property Reviews API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def trace_requests(request: Request, call_next):
    """Assign a trace id, log the request and its outcome, echo the id back."""
    trace_id = request.headers.get(TRACE_HEADER) or new_trace_id()
    request.state.trace_id = trace_id
    log = get_request_logger(trace_id, "property_reviews.http")
    client = request.client.host if request.client else "-"
    log.info(f"Incoming request: {request.method} {request.url.path} from {client}")

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        elapsed_ms = (time.perf_counter() - started) * 1000
        log.error(f"{request.method} {request.url.path} - Error after {elapsed_ms:.0f}ms: {exc}")
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000
    log.info(f"{request.method} {request.url.path} {response.status_code} - {elapsed_ms:.0f}ms")
    response.headers[TRACE_HEADER] = trace_id
    return response


def error_response(request: Request, status_code: int, message: str, code: str, details=None) -> JSONResponse:
    """Common error body; keys with no value are left out."""
    trace_id = getattr(request.state, "trace_id", None)
    body = {
        "statusCode": status_code,
        "message": message,
        "code": code,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
        "method": request.method,
        "traceId": trace_id,
    }
    body = {k: v for k, v in body.items() if v is not None}
    headers = {TRACE_HEADER: trace_id} if trace_id else None
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


@app.exception_handler(ReviewsError)
async def handle_reviews_error(request: Request, exc: ReviewsError):
    log = get_request_logger(getattr(request.state, "trace_id", None))
    log.warning(f"{type(exc).__name__}: {exc.message} | Path: {request.url.path}")
    return error_response(request, exc.status_code, exc.message, exc.code, exc.details)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    log = get_request_logger(getattr(request.state, "trace_id", None))
    log.warning(f"Invalid request parameters | Path: {request.url.path}")
    return error_response(request, 400, "Invalid request parameters", "VALIDATION_ERROR", exc.errors())


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    log = get_request_logger(getattr(request.state, "trace_id", None))
    log.warning(f"HTTPException: {exc.detail} | Path: {request.url.path}")
    return error_response(request, exc.status_code, str(exc.detail), "HTTP_ERROR")


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    log = get_request_logger(getattr(request.state, "trace_id", None))
    log.error(f"Unexpected error: {exc} | Path: {request.url.path}", exc_info=exc)
    details = None
    if is_development():
        details = {"error": str(exc), "stack": traceback.format_exception(exc)}
    return error_response(request, 500, "Internal server error", "INTERNAL_SERVER_ERROR", details)


app.include_router(api_router)


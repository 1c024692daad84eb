# rbac_admin/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from tortoise.exceptions import DoesNotExist, IntegrityError

from rbac_admin.config import settings
from rbac_admin.core.bootstrap import bootstrap
from rbac_admin.core.db import close_db, init_db
from rbac_admin.core.errors import (
    SAFE_HTTP_MESSAGES,
    AppError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
    format_field_errors,
)
from rbac_admin.core.responses import error_payload

from rbac_admin.api.v1.routers import auth, roles, users


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.INFO


if not logging.getLogger().handlers:
    logging.basicConfig(
        level=_resolve_log_level(settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Single DB registry for the process: opened here, closed on shutdown
    await init_db()
    # Default roles/permissions and a superadmin account on first run
    await bootstrap()
    yield
    await close_db()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(roles.router, prefix="/api/v1")


def _log_error(request: Request, status_code: int, code: str, message: str, exc: Exception | None = None) -> None:
    log_message = f"[{code}] {request.method} {request.url.path} -> {status_code} {message}"
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(log_message, exc_info=exc)
    else:
        logger.warning(log_message)


def _internal_detail(exc: Exception) -> str | None:
    return str(exc) if settings.expose_error_detail else None


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    _log_error(request, exc.status_code, exc.code, exc.message, exc)
    detail = exc.detail
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR and not settings.expose_error_detail:
        detail = None
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message, detail))


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: HTTPException | StarletteHTTPException) -> JSONResponse:
    message = SAFE_HTTP_MESSAGES.get(
        exc.status_code,
        InternalError.message if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else "Request failed",
    )
    detail = exc.detail if isinstance(exc.detail, str) and exc.detail != message else None
    _log_error(request, exc.status_code, "HTTP_ERROR", detail or message)
    return JSONResponse(status_code=exc.status_code, content=error_payload(message, detail))


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = format_field_errors(exc.errors())
    _log_error(request, status.HTTP_400_BAD_REQUEST, ValidationError.code, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(ValidationError.message, errors),
    )


@app.exception_handler(IntegrityError)
async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    message = "Request could not be completed due to a conflict"
    _log_error(request, status.HTTP_409_CONFLICT, ConflictError.code, message, exc)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_payload(message, _internal_detail(exc)),
    )


@app.exception_handler(DoesNotExist)
async def handle_does_not_exist(request: Request, exc: DoesNotExist) -> JSONResponse:
    _log_error(request, status.HTTP_404_NOT_FOUND, NotFoundError.code, NotFoundError.message, exc)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_payload(NotFoundError.message, _internal_detail(exc)),
    )


@app.exception_handler(Exception)
async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    _log_error(request, status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.code, InternalError.message, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(InternalError.message, _internal_detail(exc)),
    )


@app.get("/healthz")
def healthz():
    return {"success": True, "message": "ok"}

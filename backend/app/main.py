import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from app.api.routes import activity, health, proxies
from app.core.config import get_settings
from app.core.exceptions import AppError, ServiceUnavailableError
from app.core.logging_config import configure_logging
from app.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from app.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema_compatibility()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


async def storage_error_handler(request: Request, exc: OperationalError | InterfaceError):
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return await app_error_handler(request, ServiceUnavailableError())


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(OperationalError, storage_error_handler)
app.add_exception_handler(InterfaceError, storage_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)
if settings.log_requests:
    app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(proxies.router, prefix=settings.api_prefix, tags=["proxies"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from ideas_api.core import get_settings, limiter
from ideas_api.core.errors import AppError, AuthError, InternalError
from ideas_api.core.logging import configure_logging
from ideas_api.providers import SmsServiceError
from ideas_api.routers import ROUTERS

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(
    title="Ideas Platform API",
    description="Coffee-shop ideas platform: phone OTP login and sessions.",
    version=get_settings().app_version,
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, AuthError):
        # Wire response is opaque; the log keeps the real reason.
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, type(exc).__name__, exc.message)
    elif exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__)
    else:
        logger.info("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=exc.headers)


@app.exception_handler(SmsServiceError)
async def sms_error_handler(request: Request, exc: SmsServiceError):
    # Raised while resolving the provider, e.g. a half-configured Twilio account.
    logger.error("SMS provider unavailable on %s %s: %s", request.method, request.url.path, exc)
    error = InternalError("sms provider unavailable")
    return JSONResponse(status_code=error.status_code, content=error.body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("%s %s bad request: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "bad request"})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "internal server error"}
    )


@app.exception_handler(asyncio.TimeoutError)
async def timeout_error_handler(request: Request, exc: asyncio.TimeoutError):
    logger.error("Deadline exceeded on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "internal server error"}
    )


for router in ROUTERS:
    app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": get_settings().app_version}

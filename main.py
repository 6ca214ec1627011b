from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import sentry_sdk
import redis.asyncio as redis
from fastapi_limiter import FastAPILimiter
import logging

from api import auth, debug, user
from core.config import APP_ENV, LOG_FILE, REDIS_URL, SENTRY_DSN, is_development
from core.errors import OnboardingError
from db import engine
from logging_config import setup_logging
from models import Base


setup_logging(APP_ENV, LOG_FILE)
logger = logging.getLogger(__name__)

if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=APP_ENV)

origins = ["*"]

app = FastAPI(
    title="Phone Onboarding",
    description="Phone signup with OTP verification",
    version="1.0.0",
    openapi_tags=[
        {"name": "Auth", "description": "Signup, OTP verification and sign in"}
    ],
)


# Request logger middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.debug(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    return response


# ---------------- Error mapping ----------------
@app.exception_handler(OnboardingError)
async def onboarding_error_handler(request: Request, exc: OnboardingError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {type(exc).__name__}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = [err.get("msg", "Invalid value") for err in exc.errors()]
    return JSONResponse(status_code=400, content={"error": ", ".join(messages) or "Invalid request"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup: tables + redis + rate limiter
@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)

    redis_connection = redis.from_url(
        REDIS_URL,
        encoding="utf-8",
        decode_responses=True
    )
    app.state.redis = redis_connection

    await FastAPILimiter.init(redis_connection)


@app.on_event("shutdown")
async def shutdown_event():
    await FastAPILimiter.close()
    await app.state.redis.aclose()


@app.get("/health")
def health():
    return {"status": "healthy"}


# Routers
app.include_router(auth.router)
app.include_router(user.router)
if is_development():
    app.include_router(debug.router)

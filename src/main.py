import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from vidtube.config import settings
from vidtube.db.session import Database
from vidtube.errors import ApiError
from vidtube.responses import api_response, error_response
from vidtube.storage import LocalMediaUploader

from vidtube.users.routing import router as users_router
from vidtube.videos.routing import router as videos_router
from vidtube.tweets.routing import router as tweets_router
from vidtube.comments.routing import router as comments_router
from vidtube.likes.routing import router as likes_router
from vidtube.subscriptions.routing import router as subscriptions_router
from vidtube.dashboard.routing import router as dashboard_router
from vidtube.playlists.routing import router as playlists_router

# Logging
_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
logging.basicConfig(
    level=_level,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)
for _logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_logger_name).setLevel(_level)

logger = logging.getLogger("vidtube")

# CORS
# Use env-driven origins with safe local defaults from settings
origins = [origin for origin in settings.CORS_ORIGINS if origin]

if not origins or origins == ["http://localhost:3000", "http://localhost:5173", "http://localhost:8000"]:
    # Development defaults - allow common dev ports
    origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    database.open(create_tables=settings.DB_AUTO_CREATE)
    app.state.database = database
    app.state.uploader = LocalMediaUploader(settings.MEDIA_ROOT, settings.MEDIA_BASE_URL)
    try:
        yield
    finally:
        database.close()


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client = request.client.host if request.client else "-"
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} - {str(e)}")
            raise
        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} from {client} -> "
            f"{response.status_code} in {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


app = FastAPI(
    title="VidTube API",
    description=(
        "VidTube is a video-sharing backend: users upload videos, tweet, comment, like, "
        "subscribe to channels, build playlists and view channel statistics."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)
app.state.limiter = limiter


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    retry_after = exc.limit.limit.get_expiry() if exc.limit else 60
    return error_response(
        429,
        f"Too many requests. Please try again in {retry_after} seconds.",
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        error = errors[0]
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "Invalid request")).removeprefix("Value error, ")
        message = f"{field}: {message}" if field else message
    else:
        message = "Invalid request"
    return error_response(400, message)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return error_response(409, "Conflicting change, please retry")


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return error_response(500, "Database error")


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Prometheus metrics
Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(users_router, prefix='/api/v1/users')
app.include_router(videos_router, prefix='/api/v1/videos')
app.include_router(tweets_router, prefix='/api/v1/tweets')
app.include_router(comments_router, prefix='/api/v1/comments')
app.include_router(likes_router, prefix='/api/v1/likes')
app.include_router(subscriptions_router, prefix='/api/v1/subscriptions')
app.include_router(dashboard_router, prefix='/api/v1/dashboard')
app.include_router(playlists_router, prefix='/api/v1/playlist')

app.mount("/media", StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")


@app.get("/api/v1/healthcheck")
def healthcheck():
    return api_response({"status": "ok"}, "OK")

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import boto3
import firebase_admin
from botocore.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from firebase_admin import credentials
from firebase_admin import firestore as fs
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from config import settings
from errors import AppError, StoreTimeout
from routes.comments import router as comments_router
from routes.posts import router as posts_router
from routes.profile import router as profile_router
from services.comments import CommentService
from services.feed import FeedAggregator
from services.firestore import FirestoreDB
from services.likes import LikeService
from services.posts import PostService
from services.s3 import S3Service

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Firebase Admin SDK; its auth module verifies bearer tokens
    cred = credentials.Certificate(settings.firebase_credentials)
    firebase_app = firebase_admin.initialize_app(cred)

    # S3 client
    s3_client = boto3.client(
        's3',
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
        config=Config(signature_version="s3v4")
    )

    # Initialize dependencies
    firestore = FirestoreDB(fs.client(firebase_app), timeout=settings.store_timeout)
    s3 = S3Service(
        settings.bucket_name,
        s3_client,
        settings.aws_region,
        public_base_url=settings.public_base_url,
        timeout=settings.store_timeout,
    )

    app.state.firestore = firestore
    app.state.s3_service = s3
    app.state.feed = FeedAggregator(firestore)
    app.state.post_service = PostService(firestore, s3)
    app.state.like_service = LikeService(firestore)
    app.state.comment_service = CommentService(firestore)
    logger.info("Services initialised (bucket=%s)", settings.bucket_name)

    yield
    # Cleanup resources
    firebase_admin.delete_app(firebase_app)


app = FastAPI(lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = {"Retry-After": "1"} if isinstance(exc, StoreTimeout) else None
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# Include routers
app.include_router(posts_router, prefix="/posts", tags=["posts"])
app.include_router(comments_router, prefix="/posts", tags=["comments"])
app.include_router(profile_router, prefix="/profile", tags=["profile"])

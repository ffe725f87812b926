# FastAPI 진입점
# - Beanie ODM 초기화 (MongoDB, 재시도 포함)
# - 라우터 라우팅
# - CORS 설정
# - 서비스 예외 → JSON 에러 응답 변환

import logging
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from pymongo.errors import PyMongoError

from .core.config import settings
from .core.exceptions import AccountServiceError, DependencyError
from .core.retry import create_db_retry_decorator
from .models.user import User
from .models.video import Video
from .models.subscription import Subscription
from .api.v1.users import router as users_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# FastAPI 애플리케이션 인스턴스 생성
app = FastAPI(
    title="VidTube 계정 서비스 API",
    description="회원가입, 로그인/토큰 관리, 채널 프로필, 시청 기록",
    version="1.0.0"
)

# CORS 허용 도메인 세팅
# 쿠키로 토큰을 주고받으므로 allow_credentials=True 와 "*" 를 함께 쓰지 않습니다.
origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccountServiceError)
async def account_error_handler(request: Request, exc: AccountServiceError):
    if isinstance(exc, DependencyError):
        logger.error(f"Dependency failure on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status_code": exc.status_code,
            "kind": exc.kind,
            "message": exc.message,
            "success": False,
        },
    )


# DuplicateKeyError는 repository에서 Conflict로 바뀌므로 여기까지 오는 것은 연결/서버 오류입니다.
@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error(f"Database error: {exc!r}")
    return await account_error_handler(request, DependencyError("Database unavailable"))


@create_db_retry_decorator(max_attempts=settings.MONGODB_CONNECT_ATTEMPTS)
async def _connect_mongo() -> AsyncIOMotorClient:
    # 주니어 개발자님께: serverSelectionTimeoutMS 안에 연결하지 못하면
    # ServerSelectionTimeoutError가 발생하고, 재시도 데코레이터가 다시 시도합니다.
    client = AsyncIOMotorClient(settings.MONGODB_URI, serverSelectionTimeoutMS=5000)
    await client.admin.command("ping")
    return client


# Beanie 초기화 (앱 시작 시 1회)
# 계정 서비스는 모든 기능이 MongoDB에 의존하므로 연결에 실패하면 시작하지 않습니다.
@app.on_event("startup")
async def app_init():
    try:
        client = await _connect_mongo()
    except Exception:
        logger.exception(f"MongoDB 연결 실패: {settings.MONGODB_URI}")
        raise
    db = client.get_default_database()
    await init_beanie(database=db, document_models=[User, Video, Subscription])
    logger.info(f"MongoDB 연결 성공: {settings.MONGODB_URI}")

# 간단한 헬스체크
@app.get("/")
async def root():
    return {"ok": True, "app": settings.APP_NAME, "time": datetime.utcnow().isoformat()}

@app.get("/health")
async def health_check():
    return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0"}

# API v1 라우터 등록
app.include_router(users_router, prefix="/api/v1")

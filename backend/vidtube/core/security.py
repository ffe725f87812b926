# 보안 유틸리티
# - 비밀번호 해싱/검증 (passlib bcrypt)
# - JWT 서명/검증 (PyJWT)
# 주니어 개발자님께: 여기의 클래스들은 "해시/서명 기능"만 제공합니다.
# 토큰 저장, 로그인 흐름 같은 업무 규칙은 services/ 아래에 있습니다.

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict
import jwt

from .config import Settings
from .exceptions import DependencyError, TokenExpiredError, TokenInvalidError, ValidationError

logger = logging.getLogger(__name__)

# bcrypt는 72바이트 이후를 잘라내고 해시합니다. 그보다 긴 비밀번호는 받지 않습니다.
MAX_SECRET_BYTES = 72


def _too_long(secret: str) -> bool:
    return len(secret.encode("utf-8")) > MAX_SECRET_BYTES


def ensure_secret_length(secret: str) -> None:
    if _too_long(secret):
        raise ValidationError(f"Password must be at most {MAX_SECRET_BYTES} bytes")


class PasswordHasher:
    """{hash(secret) -> digest, verify(secret, digest) -> bool} 계약을 구현합니다.

    bcrypt는 일부러 느린 해시이므로 이벤트 루프를 막지 않도록 스레드풀에서 실행합니다.
    """

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    async def hash(self, secret: str) -> str:
        ensure_secret_length(secret)
        try:
            return await run_in_threadpool(self.context.hash, secret)
        except Exception as e:
            logger.error(f"Password hashing failed: {e!r}")
            raise DependencyError("Password hashing failed") from e

    async def verify(self, secret: str, digest: Optional[str]) -> bool:
        # 72바이트를 넘는 값은 앞부분이 같아도 다른 비밀번호로 취급
        if not secret or not digest or _too_long(secret):
            return False
        try:
            # passlib의 verify는 내부적으로 상수 시간 비교를 사용합니다.
            return await run_in_threadpool(self.context.verify, secret, digest)
        except Exception as e:
            logger.error(f"Password verification failed: {e!r}")
            raise DependencyError("Password verification failed") from e


class TokenSigner:
    """{sign(payload, ttl) -> token, verify(token) -> payload | fail} 계약을 구현합니다."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def sign(self, payload: Dict[str, Any], ttl: timedelta) -> str:
        now = datetime.now(tz=timezone.utc)
        claims = {
            "exp": now + ttl,
            "iat": now,
            "nbf": now,
            **payload,
        }
        try:
            return jwt.encode(claims, self.secret, algorithm=self.algorithm)
        except Exception as e:
            logger.error(f"Token signing failed: {e!r}")
            raise DependencyError("Token signing failed") from e

    def verify(self, token: Optional[str]) -> Dict[str, Any]:
        if not token:
            raise TokenInvalidError()
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.PyJWTError:
            raise TokenInvalidError()


class TokenConfig(BaseModel):
    """TokenService 생성 시 주입하는 설정 묶음 (전역 settings를 직접 읽지 않기 위함)"""
    model_config = ConfigDict(frozen=True)

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=10)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        return cls(
            access_secret=settings.JWT_SECRET_KEY,
            refresh_secret=settings.JWT_REFRESH_SECRET_KEY or settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

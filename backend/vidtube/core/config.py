# 설정 모듈
# - .env 값들을 한 곳에서 관리
# - 기본값을 제공하여 로컬 실행 편의성 확보

from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Optional
from pydantic import Field

# 프로젝트 루트 디렉토리 경로 찾기
# 주니어 개발자님께: 이 파일은 backend/vidtube/core/config.py에 있으므로,
# 3단계 상위로 올라가면 프로젝트 루트가 됩니다.
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / ".env"

class Settings(BaseSettings):
    APP_NAME: str = "vidtube"
    ENV: str = "dev"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    MONGODB_URI: str = "mongodb://localhost:27017/vidtube"
    # 시작 시 MongoDB ping 재시도 횟수
    MONGODB_CONNECT_ATTEMPTS: int = 5

    JWT_SECRET_KEY: str = Field(..., description="Access 토큰 서명에 사용되는 비밀키. 반드시 강력한 랜덤 문자열로 설정하세요.")
    # 비워두면 JWT_SECRET_KEY를 그대로 사용합니다.
    JWT_REFRESH_SECRET_KEY: Optional[str] = Field(None, description="Refresh 토큰 서명용 비밀키")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10

    # bcrypt cost. 테스트에서는 4 정도로 낮춰서 사용합니다.
    BCRYPT_ROUNDS: int = 12
    # 로컬(http) 개발 시에만 false로 설정
    COOKIE_SECURE: bool = True

    CORS_ALLOW_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # 업로드 파일을 Cloudinary로 보내기 전 임시 저장 위치 (None이면 OS 기본 temp)
    UPLOAD_TMP_DIR: Optional[str] = None

    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH) if ENV_FILE_PATH.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()

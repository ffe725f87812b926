# Blob 저장소 (Cloudinary)
# - 로컬 임시 파일을 업로드하고 URL을 반환
# - 실패 시 None 반환 (호출 측이 Dependency 에러로 변환)

import logging
from typing import Optional, Protocol

import cloudinary.exceptions
import cloudinary.uploader
from fastapi.concurrency import run_in_threadpool

from ..core.config import Settings

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    async def store(self, local_path: Optional[str]) -> Optional[str]:
        ...


class CloudinaryBlobStore:
    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        # 전역 cloudinary.config() 대신 호출마다 자격 증명을 넘깁니다.
        self.options = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "resource_type": "auto",
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryBlobStore":
        return cls(settings.CLOUDINARY_CLOUD_NAME, settings.CLOUDINARY_API_KEY, settings.CLOUDINARY_API_SECRET)

    async def store(self, local_path: Optional[str]) -> Optional[str]:
        if not local_path:
            return None
        try:
            # Cloudinary SDK는 동기 HTTP 호출이므로 스레드풀에서 실행
            result = await run_in_threadpool(cloudinary.uploader.upload, local_path, **self.options)
        except (cloudinary.exceptions.Error, OSError) as e:
            logger.error(f"[cloudinary] Upload failed for {local_path}: {e}")
            return None
        url = result.get("secure_url") or result.get("url")
        logger.info(f"[cloudinary] Uploaded {local_path} -> {url}")
        return url

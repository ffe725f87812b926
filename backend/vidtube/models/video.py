# Video 모델
# - 이 서비스는 읽기만 함 (시청 기록 조회 시 $lookup 대상)

from datetime import datetime
from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

class Video(Document):
    video_file: str
    thumbnail: str
    title: str
    description: str = ""
    duration: float = 0
    views: int = 0
    is_published: bool = True
    owner: Indexed(PydanticObjectId)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "videos"

# User 도메인 모델 (Beanie Document)
# - username, email은 unique 인덱스
# - 비밀번호 해시와 현재 refresh 토큰(사용자당 최대 1개)을 함께 저장
# - watch_history는 append 순서(가장 최근이 마지막)로 저장

from datetime import datetime
from typing import List, Optional
from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

class User(Document):
    username: Indexed(str, unique=True)  # 항상 소문자로 저장
    email: Indexed(str, unique=True)
    display_name: str
    avatar: str
    cover_image: str = ""
    watch_history: List[PydanticObjectId] = Field(default_factory=list)
    hashed_password: str = Field(repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"  # 컬렉션명

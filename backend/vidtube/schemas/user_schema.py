# 요청/응답 스키마 정의 (Pydantic 모델)
# 주니어 개발자님께: 요청 스키마의 필드를 Optional로 둔 이유는
# "빈 값" 검증을 서비스 레이어에서 통일된 Validation 에러로 처리하기 위해서입니다.

from datetime import datetime
from typing import Generic, List, Optional, TypeVar
from beanie import PydanticObjectId
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

T = TypeVar("T")

class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None

class ChangePasswordRequest(BaseModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None

class UpdateDetailsRequest(BaseModel):
    username: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class UserPublic(BaseModel):
    # hashed_password, refresh_token은 의도적으로 포함하지 않음
    model_config = ConfigDict(from_attributes=True)

    id: PydanticObjectId = Field(validation_alias=AliasChoices("_id", "id"))
    username: str
    email: str
    display_name: str
    avatar: str
    cover_image: str = ""
    watch_history: List[PydanticObjectId] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class LoginResponse(TokenPair):
    user: UserPublic

class ChannelProfile(BaseModel):
    display_name: str
    username: str
    email: str
    avatar: str
    cover_image: str = ""
    subscriber_count: int
    subscribed_channel_count: int
    is_subscribed: bool

class VideoOwner(BaseModel):
    display_name: str
    username: str
    avatar: str

class WatchHistoryEntry(BaseModel):
    id: PydanticObjectId = Field(validation_alias=AliasChoices("_id", "id"))
    video_file: str
    thumbnail: str
    title: str
    description: str = ""
    duration: float = 0
    views: int = 0
    is_published: bool = True
    owner: Optional[VideoOwner] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ApiResponse(BaseModel, Generic[T]):
    status_code: int = 200
    data: Optional[T] = None
    message: str = "Success"
    success: bool = True

# 구독 관계 모델
# - subscriber(구독자) -> channel(채널 주인) 방향의 edge
# - 채널 프로필의 구독자 수/구독 채널 수 집계에 사용

from datetime import datetime
from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

class Subscription(Document):
    subscriber: Indexed(PydanticObjectId)
    channel: Indexed(PydanticObjectId)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "subscriptions"

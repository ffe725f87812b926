# 관계 집계 저장소
# - 채널 프로필: users ← subscriptions 두 번 $lookup 후 개수/구독 여부 계산
# - 시청 기록: users.watch_history → videos → users(owner) 연속 $lookup
# 파이프라인 생성 함수는 DB 없이 테스트할 수 있도록 모듈 함수로 분리

from typing import Any, Dict, List, Optional
from beanie import PydanticObjectId

from ..models.subscription import Subscription
from ..models.user import User
from ..models.video import Video

OWNER_FIELDS = ("display_name", "username", "avatar")


def build_channel_profile_pipeline(username: str, viewer_id: Optional[PydanticObjectId]) -> List[Dict[str, Any]]:
    subscriptions = Subscription.Settings.name
    return [
        {"$match": {"username": username.lower()}},
        {"$lookup": {
            "from": subscriptions,
            "localField": "_id",
            "foreignField": "channel",
            "as": "subscribers",
        }},
        {"$lookup": {
            "from": subscriptions,
            "localField": "_id",
            "foreignField": "subscriber",
            "as": "subscribed_to",
        }},
        {"$addFields": {
            "subscriber_count": {"$size": "$subscribers"},
            "subscribed_channel_count": {"$size": "$subscribed_to"},
            "is_subscribed": {
                "$cond": {
                    "if": {"$in": [viewer_id, "$subscribers.subscriber"]},
                    "then": True,
                    "else": False,
                }
            },
        }},
        {"$project": {
            "_id": 0,
            "display_name": 1,
            "username": 1,
            "email": 1,
            "avatar": 1,
            "cover_image": 1,
            "subscriber_count": 1,
            "subscribed_channel_count": 1,
            "is_subscribed": 1,
        }},
    ]


def build_watch_history_pipeline(user_id: PydanticObjectId) -> List[Dict[str, Any]]:
    # $lookup은 localField 배열 순서를 보장하지 않으므로
    # $unwind(includeArrayIndex)로 위치를 기억했다가 마지막에 다시 정렬한다.
    # 소유자는 $lookup 결과 배열의 첫 번째 값 하나만 남긴다 (없으면 null).
    return [
        {"$match": {"_id": user_id}},
        {"$unwind": {"path": "$watch_history", "includeArrayIndex": "position"}},
        {"$lookup": {
            "from": Video.Settings.name,
            "localField": "watch_history",
            "foreignField": "_id",
            "as": "video",
        }},
        {"$unwind": "$video"},
        {"$lookup": {
            "from": User.Settings.name,
            "localField": "video.owner",
            "foreignField": "_id",
            "as": "owner",
        }},
        {"$project": {"_id": 0, "position": 1, "video": 1, **{f"owner.{f}": 1 for f in OWNER_FIELDS}}},
        {"$addFields": {"video.owner": {"$first": "$owner"}}},
        {"$sort": {"position": 1}},
        {"$replaceRoot": {"newRoot": "$video"}},
    ]


class GraphRepository:
    async def channel_profile(self, username: str, viewer_id: Optional[PydanticObjectId]) -> Optional[Dict[str, Any]]:
        rows = await User.aggregate(build_channel_profile_pipeline(username, viewer_id)).to_list()
        return rows[0] if rows else None

    async def watch_history(self, user_id: PydanticObjectId) -> List[Dict[str, Any]]:
        return await User.aggregate(build_watch_history_pipeline(user_id)).to_list()

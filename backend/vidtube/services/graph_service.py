# 관계 조회 서비스
# - 채널 프로필 (구독자 수, 구독 채널 수, 조회자의 구독 여부)
# - 시청 기록 (영상 + 소유자 요약)

import logging
from typing import List, Optional

from beanie import PydanticObjectId

from ..core.exceptions import NotFoundError, ValidationError
from ..repositories.graph_repository import GraphRepository
from ..schemas.user_schema import ChannelProfile, WatchHistoryEntry

logger = logging.getLogger(__name__)


class GraphService:
    def __init__(self, repo: GraphRepository):
        self.repo = repo

    async def get_channel_profile(self, username: Optional[str], viewer_id: Optional[PydanticObjectId]) -> ChannelProfile:
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username is missing")
        row = await self.repo.channel_profile(username.lower(), viewer_id)
        if not row:
            raise NotFoundError("Channel does not exist")
        return ChannelProfile.model_validate(row)

    async def get_watch_history(self, user_id: PydanticObjectId) -> List[WatchHistoryEntry]:
        rows = await self.repo.watch_history(user_id)
        logger.debug(f"Watch history for {user_id}: {len(rows)} entries")
        return [WatchHistoryEntry.model_validate(row) for row in rows]

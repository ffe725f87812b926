# 사용자 저장소 레이어
# - 데이터 접근(조회/생성/갱신)만 담당 (서비스 로직 분리)
# - 모든 갱신은 단일 문서 update 한 번으로 끝나므로 MongoDB의 문서 단위 원자성에 기대어 동작

from datetime import datetime
from typing import Any, Dict, Optional
from beanie import PydanticObjectId
from bson.errors import InvalidId
from beanie.odm.queries.update import UpdateResponse
from beanie.operators import Or, Set
from pymongo.errors import DuplicateKeyError

from ..core.exceptions import ConflictError, ValidationError
from ..models.user import User


def _conflict_from(err: DuplicateKeyError) -> ConflictError:
    # 주니어 개발자님께: 사전 중복 체크 이후 동시에 들어온 요청이 먼저 insert하면
    # unique 인덱스가 DuplicateKeyError를 던집니다. keyValue에서 충돌 필드를 꺼냅니다.
    key_value = (err.details or {}).get("keyValue") or {}
    field = next(iter(key_value), "username")
    return ConflictError(field)


class UserRepository:
    async def get(self, user_id: str) -> Optional[User]:
        try:
            oid = PydanticObjectId(user_id)
        except (InvalidId, TypeError):
            return None
        return await User.get(oid)

    async def find_by_identity(self, username: Optional[str] = None, email: Optional[str] = None) -> Optional[User]:
        clauses = []
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email)
        if not clauses:
            raise ValidationError("Username or email is required")
        return await User.find_one(Or(*clauses))

    async def create(self, **fields: Any) -> User:
        user = User(**fields)
        try:
            return await user.insert()
        except DuplicateKeyError as err:
            raise _conflict_from(err)

    async def update_fields(self, user_id: PydanticObjectId, fields: Dict[str, Any]) -> Optional[User]:
        fields = {**fields, "updated_at": datetime.utcnow()}
        try:
            return await User.find_one(User.id == user_id).update(
                Set(fields), response_type=UpdateResponse.NEW_DOCUMENT
            )
        except DuplicateKeyError as err:
            raise _conflict_from(err)

    async def set_password_hash(self, user_id: PydanticObjectId, hashed_password: str) -> None:
        await User.find_one(User.id == user_id).update(
            Set({User.hashed_password: hashed_password, User.updated_at: datetime.utcnow()})
        )

    async def set_refresh_token(self, user_id: PydanticObjectId, token: Optional[str]) -> None:
        await User.find_one(User.id == user_id).update(Set({User.refresh_token: token}))

    async def swap_refresh_token(self, user_id: PydanticObjectId, expected: str, token: str) -> bool:
        """저장된 토큰이 expected와 같을 때만 교체 (compare-and-swap)"""
        result = await User.find_one(User.id == user_id, User.refresh_token == expected).update(
            Set({User.refresh_token: token})
        )
        return bool(result and result.modified_count == 1)

# 자격 증명 저장소
# - 사용자 생성 (username/email 중복 시 어떤 필드인지 구분해서 Conflict)
# - username/email로 조회
# - 비밀번호 검증/변경 (평문은 절대 저장하지 않음)

import logging
from typing import Optional

from ..core.exceptions import ConflictError
from ..core.security import PasswordHasher
from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class CredentialStore:
    def __init__(self, repo: UserRepository, hasher: PasswordHasher):
        self.repo = repo
        self.hasher = hasher

    async def create(self, username: str, email: str, display_name: str, secret: str,
                     avatar: str, cover_image: Optional[str] = None):
        # 중복은 호출 측(AuthService)이 먼저 확인하고, 동시 가입 경합은 unique 인덱스가 Conflict로 막습니다.
        # 해시가 끝난 뒤에만 insert가 일어나므로 평문이 DB에 닿을 일이 없습니다.
        hashed = await self.hasher.hash(secret)
        user = await self.repo.create(
            username=username,
            email=email,
            display_name=display_name,
            hashed_password=hashed,
            avatar=avatar,
            cover_image=cover_image or "",
        )
        logger.info(f"Credential created for user {user.id}")
        return user

    async def ensure_unique(self, username: str, email: str, exclude_id=None) -> None:
        # username을 먼저 확인하므로 둘 다 겹치면 username 충돌로 보고됩니다.
        for field, value in (("username", username), ("email", email)):
            existing = await self.repo.find_by_identity(**{field: value})
            if existing is not None and existing.id != exclude_id:
                raise ConflictError(field)

    async def find_by_identity(self, username: Optional[str] = None, email: Optional[str] = None):
        return await self.repo.find_by_identity(username=username, email=email)

    async def verify_secret(self, user, candidate: Optional[str]) -> bool:
        return await self.hasher.verify(candidate, user.hashed_password)

    async def set_secret(self, user, new_secret: str) -> None:
        hashed = await self.hasher.hash(new_secret)
        await self.repo.set_password_hash(user.id, hashed)
        user.hashed_password = hashed
        logger.info(f"Password changed for user {user.id}")

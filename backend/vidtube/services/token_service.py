# 토큰 서비스
# - Access 토큰: 상태 없음(stateless), 짧은 만료
# - Refresh 토큰: 사용자 문서에 1개만 저장, 긴 만료
#
# 주니어 개발자님께: refresh 토큰은 서명/만료가 유효해도 "DB에 저장된 값"과
# 일치해야만 통과합니다. 그래서 로그아웃(revoke)이나 재발급(rotate) 후에는
# 예전 토큰이 아직 만료 전이라도 더 이상 쓸 수 없습니다.

import hmac
import logging
import uuid
from typing import Optional

from ..core.exceptions import TokenInvalidError
from ..core.security import TokenConfig, TokenSigner
from ..repositories.user_repository import UserRepository
from ..schemas.user_schema import TokenPair

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


class TokenService:
    def __init__(self, config: TokenConfig, repo: UserRepository):
        self.config = config
        self.repo = repo
        self.access_signer = TokenSigner(config.access_secret, config.algorithm)
        self.refresh_signer = TokenSigner(config.refresh_secret, config.algorithm)

    # ---- Access ----

    def issue_access(self, user) -> str:
        return self.access_signer.sign(
            {
                "sub": str(user.id),
                "type": ACCESS,
                "username": user.username,
                "email": user.email,
                "display_name": user.display_name,
            },
            self.config.access_ttl,
        )

    def verify_access(self, token: Optional[str]) -> str:
        """유효하면 user id를 반환. 만료 시 TokenExpiredError, 그 외 TokenInvalidError"""
        payload = self.access_signer.verify(token)
        return self._subject(payload, ACCESS)

    # ---- Refresh ----

    def issue_refresh(self, user) -> str:
        # jti가 없으면 같은 초에 발급된 두 토큰이 완전히 같아집니다.
        return self.refresh_signer.sign(
            {"sub": str(user.id), "type": REFRESH, "jti": uuid.uuid4().hex},
            self.config.refresh_ttl,
        )

    async def verify_refresh(self, token: Optional[str]):
        """서명/만료 확인 후 저장된 토큰과 일치하는 경우에만 사용자를 반환"""
        payload = self.refresh_signer.verify(token)
        user_id = self._subject(payload, REFRESH)
        user = await self.repo.get(user_id)
        # 사용자 없음 / 이미 교체됨 / 로그아웃됨을 구분하지 않습니다.
        if user is None or not user.refresh_token or not hmac.compare_digest(user.refresh_token, token):
            raise TokenInvalidError()
        return user

    async def rotate(self, user, expected: Optional[str] = None) -> TokenPair:
        """access/refresh 토큰을 함께 발급하고 저장된 refresh 토큰을 덮어씁니다.

        expected가 주어지면 저장된 값이 여전히 expected일 때만 교체합니다.
        동시에 같은 토큰으로 두 번 재발급을 요청하면 하나만 성공합니다.
        """
        access = self.issue_access(user)
        refresh = self.issue_refresh(user)
        if expected is None:
            await self.repo.set_refresh_token(user.id, refresh)
        elif not await self.repo.swap_refresh_token(user.id, expected, refresh):
            logger.warning(f"Refresh token for user {user.id} was rotated concurrently")
            raise TokenInvalidError()
        user.refresh_token = refresh
        logger.info(f"Rotated tokens for user {user.id}")
        return TokenPair(access_token=access, refresh_token=refresh)

    async def revoke(self, user) -> None:
        await self.repo.set_refresh_token(user.id, None)
        user.refresh_token = None
        logger.info(f"Revoked refresh token for user {user.id}")

    @staticmethod
    def _subject(payload: dict, expected_type: str) -> str:
        if payload.get("type") != expected_type or not payload.get("sub"):
            raise TokenInvalidError()
        return payload["sub"]

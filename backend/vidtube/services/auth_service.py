# 인증 서비스 레이어 (세션 컨트롤러)
# - 회원가입, 로그인, 로그아웃, 토큰 재발급
# - 비밀번호 변경, 프로필/이미지 수정
# CredentialStore(자격 증명)와 TokenService(토큰)를 조합하는 얇은 흐름들

import logging
from typing import Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import (
    DependencyError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ..core.security import ensure_secret_length
from ..repositories.user_repository import UserRepository
from ..schemas.user_schema import LoginResponse, TokenPair, UserPublic
from .blob_store import BlobStore
from .credential_store import CredentialStore
from .token_service import TokenService

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _require(**fields: Optional[str]) -> dict:
    cleaned = {name: _clean(value) for name, value in fields.items()}
    if any(not value for value in cleaned.values()):
        raise ValidationError("All fields are required")
    return cleaned


def _check_email(email: str) -> None:
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        raise ValidationError("Invalid email address")


class AuthService:
    def __init__(self, repo: UserRepository, credentials: CredentialStore,
                 tokens: TokenService, blobs: BlobStore):
        self.repo = repo
        self.credentials = credentials
        self.tokens = tokens
        self.blobs = blobs

    async def register(self, username: Optional[str], email: Optional[str], display_name: Optional[str],
                       password: Optional[str], avatar_path: Optional[str] = None,
                       cover_image_path: Optional[str] = None) -> UserPublic:
        fields = _require(username=username, email=email, display_name=display_name, password=password)
        username = fields["username"].lower()
        ensure_secret_length(password)
        _check_email(fields["email"])
        await self.credentials.ensure_unique(username, fields["email"])

        if not avatar_path:
            raise ValidationError("Avatar file is required")
        avatar = await self.blobs.store(avatar_path)
        if not avatar:
            raise DependencyError("Error uploading avatar")
        cover_image = await self.blobs.store(cover_image_path) if cover_image_path else None

        user = await self.credentials.create(
            username=username,
            email=fields["email"],
            display_name=fields["display_name"],
            secret=password,
            avatar=avatar,
            cover_image=cover_image,
        )
        logger.info(f"User registered: {user.id} ({username})")
        return UserPublic.model_validate(user)

    async def login(self, username: Optional[str], email: Optional[str], password: Optional[str]) -> LoginResponse:
        username, email = _clean(username).lower(), _clean(email)
        if not (username or email) or not password:
            raise ValidationError("Username or email and password are required")

        user = await self.credentials.find_by_identity(username=username or None, email=email or None)
        if user is None:
            raise NotFoundError("User does not exist")
        if not await self.credentials.verify_secret(user, password):
            logger.warning(f"Failed login for user {user.id}")
            raise UnauthorizedError("Invalid user credentials")

        tokens = await self.tokens.rotate(user)
        logger.info(f"User logged in: {user.id}")
        # refresh 토큰을 쿠키와 함께 응답 본문에도 내려주는 것은 기존 클라이언트 호환을 위한 현재 동작
        return LoginResponse(user=UserPublic.model_validate(user), **tokens.model_dump())

    async def logout(self, user) -> None:
        await self.tokens.revoke(user)
        logger.info(f"User logged out: {user.id}")

    async def refresh(self, refresh_token: Optional[str]) -> TokenPair:
        if not refresh_token:
            raise UnauthorizedError()
        try:
            user = await self.tokens.verify_refresh(refresh_token)
            return await self.tokens.rotate(user, expected=refresh_token)
        except UnauthorizedError:
            logger.warning("Rejected refresh token")
            raise UnauthorizedError("Invalid refresh token")

    async def change_password(self, user, old_password: Optional[str], new_password: Optional[str]) -> None:
        if not _clean(new_password):
            raise ValidationError("New password is required")
        ensure_secret_length(new_password)
        if not await self.credentials.verify_secret(user, old_password):
            raise UnauthorizedError("Invalid old password")
        await self.credentials.set_secret(user, new_password)

    async def update_details(self, user, username: Optional[str], display_name: Optional[str],
                             email: Optional[str]) -> UserPublic:
        fields = _require(username=username, display_name=display_name, email=email)
        fields["username"] = fields["username"].lower()
        _check_email(fields["email"])
        await self.credentials.ensure_unique(fields["username"], fields["email"], exclude_id=user.id)
        updated = await self._save(user, fields)
        logger.info(f"Account details updated: {user.id}")
        return updated

    async def update_avatar(self, user, avatar_path: Optional[str]) -> UserPublic:
        return await self._update_image(user, "avatar", avatar_path)

    async def update_cover_image(self, user, cover_image_path: Optional[str]) -> UserPublic:
        return await self._update_image(user, "cover_image", cover_image_path)

    async def _update_image(self, user, field: str, local_path: Optional[str]) -> UserPublic:
        label = field.replace("_", " ")
        if not local_path:
            raise ValidationError(f"{label.capitalize()} file is required")
        url = await self.blobs.store(local_path)
        if not url:
            raise DependencyError(f"Error uploading {label}")
        # 이전 이미지 삭제는 이 서비스가 관리하지 않습니다.
        updated = await self._save(user, {field: url})
        logger.info(f"{label.capitalize()} updated: {user.id}")
        return updated

    async def _save(self, user, fields: dict) -> UserPublic:
        updated = await self.repo.update_fields(user.id, fields)
        if updated is None:
            raise NotFoundError("User does not exist")
        return UserPublic.model_validate(updated)

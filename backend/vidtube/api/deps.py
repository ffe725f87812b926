# 라우터에서 사용하는 의존성 모음
# - 서비스 조립 (repository + hasher + token config + blob store)
# - 현재 사용자 가져오기 (쿠키 또는 Authorization 헤더의 access 토큰)

from functools import lru_cache
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from ..core.config import settings
from ..core.exceptions import UnauthorizedError
from ..core.security import PasswordHasher, TokenConfig
from ..models.user import User
from ..repositories.graph_repository import GraphRepository
from ..repositories.user_repository import UserRepository
from ..services.auth_service import AuthService
from ..services.blob_store import BlobStore, CloudinaryBlobStore
from ..services.credential_store import CredentialStore
from ..services.graph_service import GraphService
from ..services.token_service import TokenService

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.BCRYPT_ROUNDS)


@lru_cache
def get_token_config() -> TokenConfig:
    return TokenConfig.from_settings(settings)


def get_blob_store() -> BlobStore:
    return CloudinaryBlobStore.from_settings(settings)


def get_token_service(
    repo: UserRepository = Depends(UserRepository),
    config: TokenConfig = Depends(get_token_config),
) -> TokenService:
    return TokenService(config, repo)


def get_auth_service(
    repo: UserRepository = Depends(UserRepository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    blobs: BlobStore = Depends(get_blob_store),
) -> AuthService:
    return AuthService(repo, CredentialStore(repo, hasher), tokens, blobs)


def get_graph_service(repo: GraphRepository = Depends(GraphRepository)) -> GraphService:
    return GraphService(repo)


async def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
    repo: UserRepository = Depends(UserRepository),
) -> User:
    token = request.cookies.get(ACCESS_COOKIE) or bearer
    if not token:
        raise UnauthorizedError()
    # 만료/위조 모두 401로 통일 (메시지도 같음)
    user_id = tokens.verify_access(token)
    user = await repo.get(user_id)
    if user is None:
        raise UnauthorizedError("Invalid access token")
    return user

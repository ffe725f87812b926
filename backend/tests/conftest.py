# 테스트 공통 설정 및 fake 구현 (DB/Cloudinary 없이 서비스 레이어 테스트)
import asyncio
import dataclasses
import os
from datetime import datetime
from typing import List, Optional

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-unit-tests")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("COOKIE_SECURE", "false")

import pytest
from beanie import PydanticObjectId
from bson.errors import InvalidId

from vidtube.core.exceptions import ConflictError, ValidationError
from vidtube.core.security import PasswordHasher, TokenConfig
from vidtube.services.auth_service import AuthService
from vidtube.services.credential_store import CredentialStore
from vidtube.services.token_service import TokenService


@dataclasses.dataclass
class FakeUser:
    username: str
    email: str
    display_name: str
    hashed_password: str
    avatar: str
    cover_image: str = ""
    refresh_token: Optional[str] = None
    watch_history: List[PydanticObjectId] = dataclasses.field(default_factory=list)
    id: PydanticObjectId = dataclasses.field(default_factory=PydanticObjectId)
    created_at: datetime = dataclasses.field(default_factory=datetime.utcnow)
    updated_at: datetime = dataclasses.field(default_factory=datetime.utcnow)


class InMemoryUserRepository:
    """UserRepository와 같은 인터페이스. 조회 결과는 복사본이라 DB처럼 동작"""

    def __init__(self):
        self.users = {}

    def stored(self, user_id) -> FakeUser:
        return self.users[PydanticObjectId(user_id)]

    async def get(self, user_id):
        await asyncio.sleep(0)
        try:
            user = self.users.get(PydanticObjectId(user_id))
        except (InvalidId, TypeError):
            return None
        return dataclasses.replace(user) if user else None

    async def find_by_identity(self, username=None, email=None):
        if not username and not email:
            raise ValidationError("Username or email is required")
        await asyncio.sleep(0)
        for user in self.users.values():
            if (username and user.username == username) or (email and user.email == email):
                return dataclasses.replace(user)
        return None

    async def create(self, **fields):
        for field in ("username", "email"):
            if any(getattr(u, field) == fields[field] for u in self.users.values()):
                raise ConflictError(field)
        user = FakeUser(**fields)
        self.users[user.id] = user
        return dataclasses.replace(user)

    async def update_fields(self, user_id, fields):
        user = self.users.get(user_id)
        if user is None:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = datetime.utcnow()
        return dataclasses.replace(user)

    async def set_password_hash(self, user_id, hashed_password):
        self.users[user_id].hashed_password = hashed_password

    async def set_refresh_token(self, user_id, token):
        self.users[user_id].refresh_token = token

    async def swap_refresh_token(self, user_id, expected, token):
        user = self.users[user_id]
        if user.refresh_token != expected:
            return False
        user.refresh_token = token
        return True


class FakeBlobStore:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.stored: List[str] = []

    async def store(self, local_path):
        if not local_path or self.fail:
            return None
        self.stored.append(local_path)
        return f"https://cdn.example.com/{os.path.basename(local_path)}"


@pytest.fixture
def repo():
    return InMemoryUserRepository()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_config():
    return TokenConfig(access_secret="access-secret", refresh_secret="refresh-secret")


@pytest.fixture
def tokens(token_config, repo):
    return TokenService(token_config, repo)


@pytest.fixture
def credentials(repo, hasher):
    return CredentialStore(repo, hasher)


@pytest.fixture
def blobs():
    return FakeBlobStore()


@pytest.fixture
def auth(repo, credentials, tokens, blobs):
    return AuthService(repo, credentials, tokens, blobs)


@pytest.fixture
def registered(auth):
    """ann / p@ss 로 가입된 사용자"""
    return asyncio.run(auth.register("ann", "a@x.com", "Ann", "p@ss", "/tmp/f1.png"))

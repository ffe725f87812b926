# 토큰 서비스 테스트 (저장된 refresh 토큰과의 일치 규칙 중심)
import asyncio
from datetime import timedelta

import pytest

from vidtube.core.exceptions import TokenExpiredError, TokenInvalidError
from vidtube.core.security import TokenConfig
from vidtube.services.token_service import TokenService

from conftest import FakeUser


def _user(repo):
    user = FakeUser(username="bob", email="b@x.com", display_name="Bob", hashed_password="h", avatar="a.png")
    repo.users[user.id] = user
    return user


def test_access_token_round_trip(tokens, repo):
    user = _user(repo)
    token = tokens.issue_access(user)
    assert tokens.verify_access(token) == str(user.id)


def test_access_token_expired(repo):
    config = TokenConfig(access_secret="a", refresh_secret="r", access_ttl=timedelta(seconds=-1))
    service = TokenService(config, repo)
    token = service.issue_access(_user(repo))
    with pytest.raises(TokenExpiredError):
        service.verify_access(token)


def test_refresh_token_is_not_an_access_token(repo):
    # 같은 비밀키를 써도 type 클레임으로 구분
    service = TokenService(TokenConfig(access_secret="same", refresh_secret="same"), repo)
    user = _user(repo)
    with pytest.raises(TokenInvalidError):
        service.verify_access(service.issue_refresh(user))


def test_rotate_stores_refresh_token(tokens, repo):
    user = _user(repo)
    pair = asyncio.run(tokens.rotate(user))
    assert repo.stored(user.id).refresh_token == pair.refresh_token
    assert tokens.verify_access(pair.access_token) == str(user.id)
    verified = asyncio.run(tokens.verify_refresh(pair.refresh_token))
    assert verified.id == user.id


def test_prior_refresh_token_fails_after_rotation(tokens, repo):
    user = _user(repo)
    first = asyncio.run(tokens.rotate(user))
    second = asyncio.run(tokens.rotate(user))
    assert first.refresh_token != second.refresh_token
    with pytest.raises(TokenInvalidError):
        asyncio.run(tokens.verify_refresh(first.refresh_token))
    assert asyncio.run(tokens.verify_refresh(second.refresh_token)).id == user.id


def test_revoke_invalidates_latest_refresh_token(tokens, repo):
    user = _user(repo)
    pair = asyncio.run(tokens.rotate(user))
    asyncio.run(tokens.revoke(user))
    assert repo.stored(user.id).refresh_token is None
    with pytest.raises(TokenInvalidError):
        asyncio.run(tokens.verify_refresh(pair.refresh_token))


def test_refresh_token_for_unknown_user_is_invalid(tokens, repo):
    ghost = FakeUser(username="ghost", email="g@x.com", display_name="G", hashed_password="h", avatar="a")
    with pytest.raises(TokenInvalidError):
        asyncio.run(tokens.verify_refresh(tokens.issue_refresh(ghost)))


def test_expired_refresh_token(repo):
    service = TokenService(TokenConfig(access_secret="a", refresh_secret="r", refresh_ttl=timedelta(seconds=-1)), repo)
    user = _user(repo)
    pair = asyncio.run(service.rotate(user))
    with pytest.raises(TokenExpiredError):
        asyncio.run(service.verify_refresh(pair.refresh_token))


def test_compare_and_swap_rotation_rejects_stale_expected(tokens, repo):
    user = _user(repo)
    first = asyncio.run(tokens.rotate(user))
    asyncio.run(tokens.rotate(user))
    current = repo.stored(user.id).refresh_token
    with pytest.raises(TokenInvalidError):
        asyncio.run(tokens.rotate(user, expected=first.refresh_token))
    assert repo.stored(user.id).refresh_token == current

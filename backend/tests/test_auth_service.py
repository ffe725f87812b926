# 세션 흐름 테스트 (회원가입/로그인/로그아웃/재발급/비밀번호/프로필)
import asyncio

import pytest

from vidtube.core.exceptions import (
    ConflictError,
    DependencyError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from vidtube.services.auth_service import AuthService


def _login(auth, password="p@ss", **identity):
    identity = identity or {"username": "ann"}
    return asyncio.run(auth.login(identity.get("username"), identity.get("email"), password))


def test_register_returns_public_user(auth, repo, registered):
    assert registered.username == "ann"
    assert registered.avatar == "https://cdn.example.com/f1.png"
    assert registered.cover_image == ""
    dumped = registered.model_dump()
    assert "hashed_password" not in dumped
    assert "refresh_token" not in dumped
    stored = repo.stored(registered.id)
    assert stored.hashed_password != "p@ss"


def test_register_lowercases_and_trims_username(auth):
    user = asyncio.run(auth.register("  MixedCase ", "m@x.com", "Mixed", "pw", "/tmp/a.png", "/tmp/c.png"))
    assert user.username == "mixedcase"
    assert user.cover_image == "https://cdn.example.com/c.png"


@pytest.mark.parametrize("field, kwargs", [
    ("username", {"username": "ann", "email": "other@x.com"}),
    ("username", {"username": "ANN", "email": "other@x.com"}),
    ("email", {"username": "other", "email": "a@x.com"}),
])
def test_register_conflict_names_field(auth, registered, field, kwargs):
    with pytest.raises(ConflictError) as exc:
        asyncio.run(auth.register(display_name="X", password="pw", avatar_path="/tmp/a.png", **kwargs))
    assert exc.value.field == field
    assert field.capitalize() in exc.value.message


@pytest.mark.parametrize("missing", ["username", "email", "display_name", "password"])
def test_register_requires_all_fields(auth, missing):
    fields = {"username": "zed", "email": "z@x.com", "display_name": "Zed", "password": "pw"}
    fields[missing] = "   "
    with pytest.raises(ValidationError):
        asyncio.run(auth.register(avatar_path="/tmp/a.png", **fields))


def test_register_rejects_bad_email(auth):
    with pytest.raises(ValidationError):
        asyncio.run(auth.register("zed", "not-an-email", "Zed", "pw", "/tmp/a.png"))


def test_register_requires_avatar(auth, repo):
    with pytest.raises(ValidationError):
        asyncio.run(auth.register("zed", "z@x.com", "Zed", "pw", None))
    assert repo.users == {}


def test_register_upload_failure_is_dependency_error(repo, credentials, tokens):
    from conftest import FakeBlobStore

    auth = AuthService(repo, credentials, tokens, FakeBlobStore(fail=True))
    with pytest.raises(DependencyError):
        asyncio.run(auth.register("zed", "z@x.com", "Zed", "pw", "/tmp/a.png"))
    assert repo.users == {}


def test_login_by_username_and_email(auth, repo, registered):
    result = _login(auth)
    assert result.user.username == "ann"
    assert repo.stored(registered.id).refresh_token == result.refresh_token
    by_email = _login(auth, email="a@x.com")
    assert by_email.user.id == registered.id


def test_login_wrong_password_issues_nothing(auth, repo, registered):
    _login(auth)
    before = repo.stored(registered.id).refresh_token
    with pytest.raises(UnauthorizedError):
        _login(auth, password="wrong")
    assert repo.stored(registered.id).refresh_token == before


def test_login_unknown_user(auth, registered):
    with pytest.raises(NotFoundError):
        _login(auth, username="nobody")


def test_login_requires_identity_and_password(auth):
    with pytest.raises(ValidationError):
        asyncio.run(auth.login(None, None, "pw"))
    with pytest.raises(ValidationError):
        asyncio.run(auth.login("ann", None, ""))


def test_refresh_rotates_pair(auth, tokens, registered):
    first = _login(auth)
    pair = asyncio.run(auth.refresh(first.refresh_token))
    assert pair.refresh_token != first.refresh_token
    with pytest.raises(UnauthorizedError):
        asyncio.run(auth.refresh(first.refresh_token))
    assert asyncio.run(tokens.verify_refresh(pair.refresh_token)).id == registered.id


def test_refresh_rejects_missing_and_garbage(auth):
    with pytest.raises(UnauthorizedError):
        asyncio.run(auth.refresh(None))
    with pytest.raises(UnauthorizedError):
        asyncio.run(auth.refresh("garbage"))


def test_concurrent_refresh_leaves_one_valid_token(auth, tokens, registered):
    token = _login(auth).refresh_token

    async def race():
        return await asyncio.gather(auth.refresh(token), auth.refresh(token), return_exceptions=True)

    results = asyncio.run(race())
    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, UnauthorizedError)]
    assert len(succeeded) == 1
    assert len(failed) == 1
    assert asyncio.run(tokens.verify_refresh(succeeded[0].refresh_token)).id == registered.id


def test_logout_revokes_refresh_token(auth, repo, registered):
    result = _login(auth)
    user = asyncio.run(repo.get(registered.id))
    asyncio.run(auth.logout(user))
    assert repo.stored(registered.id).refresh_token is None
    with pytest.raises(UnauthorizedError):
        asyncio.run(auth.refresh(result.refresh_token))


def test_change_password(auth, repo, credentials, registered):
    user = asyncio.run(repo.get(registered.id))
    with pytest.raises(UnauthorizedError):
        asyncio.run(auth.change_password(user, "wrong", "n3w"))
    asyncio.run(auth.change_password(user, "p@ss", "n3w"))
    assert asyncio.run(credentials.verify_secret(user, "n3w"))
    assert not asyncio.run(credentials.verify_secret(user, "p@ss"))
    with pytest.raises(UnauthorizedError):
        _login(auth, password="p@ss")
    assert _login(auth, password="n3w").user.id == registered.id


def test_change_password_requires_new_password(auth, repo, registered):
    user = asyncio.run(repo.get(registered.id))
    with pytest.raises(ValidationError):
        asyncio.run(auth.change_password(user, "p@ss", " "))


def test_update_details(auth, repo, registered):
    user = asyncio.run(repo.get(registered.id))
    updated = asyncio.run(auth.update_details(user, "AnnNew", "Ann N", "new@x.com"))
    assert updated.username == "annnew"
    assert updated.display_name == "Ann N"
    assert repo.stored(registered.id).email == "new@x.com"


def test_update_details_keeps_own_values(auth, repo, registered):
    user = asyncio.run(repo.get(registered.id))
    updated = asyncio.run(auth.update_details(user, "ann", "Annie", "a@x.com"))
    assert updated.display_name == "Annie"


def test_update_details_validation_and_conflict(auth, repo, registered):
    asyncio.run(auth.register("bob", "b@x.com", "Bob", "pw", "/tmp/b.png"))
    user = asyncio.run(repo.get(registered.id))
    with pytest.raises(ValidationError):
        asyncio.run(auth.update_details(user, "ann", "", "a@x.com"))
    with pytest.raises(ConflictError) as exc:
        asyncio.run(auth.update_details(user, "ann", "Ann", "b@x.com"))
    assert exc.value.field == "email"


def test_update_avatar_and_cover(auth, repo, registered):
    user = asyncio.run(repo.get(registered.id))
    assert asyncio.run(auth.update_avatar(user, "/tmp/new.png")).avatar == "https://cdn.example.com/new.png"
    assert asyncio.run(auth.update_cover_image(user, "/tmp/cov.png")).cover_image == "https://cdn.example.com/cov.png"
    with pytest.raises(ValidationError):
        asyncio.run(auth.update_avatar(user, None))


def test_update_avatar_upload_failure(repo, credentials, tokens, registered):
    from conftest import FakeBlobStore

    auth = AuthService(repo, credentials, tokens, FakeBlobStore(fail=True))
    user = asyncio.run(repo.get(registered.id))
    with pytest.raises(DependencyError):
        asyncio.run(auth.update_cover_image(user, "/tmp/cov.png"))


def test_register_checks_uniqueness_once(auth, repo):
    calls = []
    lookup = repo.find_by_identity

    async def counting(**identity):
        calls.append(identity)
        return await lookup(**identity)

    repo.find_by_identity = counting
    asyncio.run(auth.register("zed", "z@x.com", "Zed", "pw", "/tmp/a.png"))
    assert calls == [{"username": "zed"}, {"email": "z@x.com"}]


def test_credential_create_conflict_comes_from_store(credentials, registered):
    with pytest.raises(ConflictError) as exc:
        asyncio.run(credentials.create("other", "a@x.com", "Other", "pw", "a.png"))
    assert exc.value.field == "email"


def test_register_rejects_password_over_bcrypt_limit(auth, repo, blobs):
    with pytest.raises(ValidationError):
        asyncio.run(auth.register("zed", "z@x.com", "Zed", "x" * 73, "/tmp/a.png"))
    assert blobs.stored == []
    assert repo.users == {}


def test_change_password_rejects_password_over_bcrypt_limit(auth, repo, registered):
    user = asyncio.run(repo.get(registered.id))
    with pytest.raises(ValidationError):
        asyncio.run(auth.change_password(user, "p@ss", "x" * 73))

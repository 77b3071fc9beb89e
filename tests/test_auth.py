import pytest
from fastapi import HTTPException

from marketplace_ops.core.dependencies import is_super_user
from marketplace_ops.modules.auth.service import AuthService, TokenCache
from tests.fakes import FakeSupabase


@pytest.fixture()
def supabase():
    fake = FakeSupabase()
    user = fake.auth.admin.add_identity("admin-id", "admin@example.com", app_metadata={"type": "super_user"})
    fake.auth.tokens["good"] = user
    return fake


def test_resolves_token_to_user(supabase):
    user_data = AuthService(supabase, cache=TokenCache()).get_current_user("good")
    assert user_data["email"] == "admin@example.com"
    assert is_super_user(user_data)


def test_cached_user_survives_revocation(supabase):
    service = AuthService(supabase, cache=TokenCache())
    service.get_current_user("good")
    del supabase.auth.tokens["good"]
    assert service.get_current_user("good")["id"] == "admin-id"


def test_expired_cache_entry_is_refetched(supabase):
    service = AuthService(supabase, cache=TokenCache(ttl_seconds=0))
    service.get_current_user("good")
    del supabase.auth.tokens["good"]
    with pytest.raises(HTTPException) as exc:
        service.get_current_user("good")
    assert exc.value.status_code == 401


def test_unknown_token_is_unauthorized(supabase):
    with pytest.raises(HTTPException) as exc:
        AuthService(supabase, cache=TokenCache()).get_current_user("bad")
    assert exc.value.detail == "Invalid or expired token"


def test_plain_user_is_not_super_user():
    assert not is_super_user({"app_metadata": {}})
    assert not is_super_user({"app_metadata": None})


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestTokenCache:
    def test_full_cache_drops_expired_entries(self):
        clock = FakeClock()
        cache = TokenCache(ttl_seconds=60, max_size=2, clock=clock)
        cache.put("a", {"id": "a"})
        cache.put("b", {"id": "b"})

        clock.now = 61
        cache.put("c", {"id": "c"})

        assert cache.get("c") == {"id": "c"}
        assert cache.get("a") is None

    def test_full_cache_of_live_entries_skips_new_token(self):
        clock = FakeClock()
        cache = TokenCache(ttl_seconds=60, max_size=1, clock=clock)
        cache.put("a", {"id": "a"})
        cache.put("b", {"id": "b"})

        assert cache.get("a") == {"id": "a"}
        assert cache.get("b") is None

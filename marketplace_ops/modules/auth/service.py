import hashlib
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import HTTPException, status
from supabase import Client

logger = logging.getLogger(__name__)


class TokenCache:
    """Verified users keyed by token digest, kept for a short TTL"""

    def __init__(self, ttl_seconds: float = 60, max_size: int = 500, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.clock = clock
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self.key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        user_data, expiry = entry
        if self.clock() >= expiry:
            del self._entries[key]
            return None
        return user_data

    def put(self, token: str, user_data: Dict[str, Any]) -> None:
        now = self.clock()
        if len(self._entries) >= self.max_size:
            self._entries = {k: v for k, v in self._entries.items() if v[1] > now}
        if len(self._entries) >= self.max_size:
            return
        self._entries[self.key(token)] = (user_data, now + self.ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()


_token_cache = TokenCache()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class AuthService:
    """Resolves bearer tokens to Supabase Auth users for the maintenance API"""

    def __init__(self, supabase: Client, cache: Optional[TokenCache] = None):
        self.supabase = supabase
        self.cache = cache or _token_cache

    def get_current_user(self, token: str) -> Dict[str, Any]:
        cached = self.cache.get(token)
        if cached is not None:
            return cached

        try:
            response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            message = str(e)
            logger.info(f"Token rejected by Supabase Auth: {message}")
            if "jwt" in message.lower() or "expired" in message.lower() or "invalid" in message.lower():
                raise _unauthorized("Invalid or expired token")
            raise _unauthorized("Authentication failed")

        if not response or not response.user:
            raise _unauthorized("Invalid or expired token")

        user = response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        }
        self.cache.put(token, user_data)
        return user_data


def clear_auth_cache() -> None:
    _token_cache.clear()

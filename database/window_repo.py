"""Repo Redis da janela de 24h (último inbound + índice ordenado por expiração)."""

from __future__ import annotations

from typing import List, Optional

import redis

WINDOW_INDEX_KEY = "z:window24h"
# Upper bound prático no lugar de +inf
SCORE_MAX = 9999999999999


def _last_inbound_key(user_id: str) -> str:
    return f"last_inbound_ts:{user_id}"


class WindowRepository:
    """Leituras e escritas cruas da janela; sem regra de negócio."""

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        if client is None:
            from core.redis_client import redis_client

            client = redis_client
        self.redis = client

    def set_last_inbound(self, user_id: str, at_ms: int) -> None:
        self.redis.set(_last_inbound_key(user_id), str(int(at_ms)))

    def get_last_inbound(self, user_id: str) -> int:
        value = self.redis.get(_last_inbound_key(user_id))
        try:
            return int(value) if value else 0
        except (TypeError, ValueError):
            return 0

    def delete_last_inbound(self, user_id: str) -> None:
        self.redis.delete(_last_inbound_key(user_id))

    def upsert_expiry(self, user_id: str, expires_at_ms: int) -> None:
        # ZADD sem flags: sobrescreve o score anterior
        self.redis.zadd(WINDOW_INDEX_KEY, {user_id: int(expires_at_ms)})

    def get_expiry(self, user_id: str) -> Optional[int]:
        score = self.redis.zscore(WINDOW_INDEX_KEY, user_id)
        return int(score) if score is not None else None

    def remove_expiry(self, user_id: str) -> None:
        self.redis.zrem(WINDOW_INDEX_KEY, user_id)

    def count_active(self, at_ms: int) -> int:
        return int(self.redis.zcount(WINDOW_INDEX_KEY, int(at_ms), SCORE_MAX) or 0)

    def list_active(self, at_ms: int, limit: int) -> List[str]:
        members = self.redis.zrangebyscore(
            WINDOW_INDEX_KEY, int(at_ms), SCORE_MAX, start=0, num=int(limit)
        )
        return [str(member) for member in members or []]


__all__ = ["SCORE_MAX", "WINDOW_INDEX_KEY", "WindowRepository"]

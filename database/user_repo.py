"""Diretório de usuários conhecidos e plano atual (Redis)."""

from __future__ import annotations

import json
from typing import List, Optional

import redis

USERS_INDEX_KEY = "users:index"


def _plan_key(user_id: str) -> str:
    return f"user:{user_id}:plan"


def _normalize_plan(value) -> str:
    """Normaliza valores sujos do tipo ``"\\"\\""`` gravados por versões antigas."""

    text = str(value or "").strip()
    if text.startswith('"') and text.endswith('"'):
        try:
            text = str(json.loads(text)).strip()
        except ValueError:
            text = text.strip('"').strip()
    text = text.upper()
    return "" if text == '""' else text


class UserDirectory:
    """Enumera usuários (``users:index``) e resolve o plano de cada um."""

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        if client is None:
            from core.redis_client import redis_client

            client = redis_client
        self.redis = client

    def index_user(self, user_id: str) -> None:
        self.redis.sadd(USERS_INDEX_KEY, user_id)

    def list_all_known_users(self) -> List[str]:
        return sorted(str(member) for member in self.redis.smembers(USERS_INDEX_KEY))

    def get_plan_code(self, user_id: str) -> str:
        return _normalize_plan(self.redis.get(_plan_key(user_id)))

    def set_plan_code(self, user_id: str, plan_code: str) -> str:
        self.index_user(user_id)
        plan = _normalize_plan(plan_code)
        # sem plano => DEL (nunca SET "")
        if not plan:
            self.redis.delete(_plan_key(user_id))
            return ""
        self.redis.set(_plan_key(user_id), plan)
        return plan


__all__ = ["USERS_INDEX_KEY", "UserDirectory"]

"""Repo Redis para campanhas de broadcast (meta, sent, pending, erros e índices)."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

import redis

from core.config import settings

CAMPAIGNS_LIST_KEY = "campaigns:list"  # LIST de ids (mais recente primeiro)
PENDING_CAMPAIGNS_KEY = "campaigns:pending:set"  # SET de ids com pendências


def _meta_key(campaign_id: str) -> str:
    return f"campaign:{campaign_id}:meta"


def _sent_key(campaign_id: str) -> str:
    return f"campaign:{campaign_id}:sent"


def _pending_key(campaign_id: str) -> str:
    return f"campaign:{campaign_id}:pending"


def _errors_key(campaign_id: str) -> str:
    return f"campaign:{campaign_id}:errors"


class CampaignRepository:
    """Estruturas por campanha + lista global e índice de pendências."""

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        if client is None:
            from core.redis_client import redis_client

            client = redis_client
        self.redis = client

    # Meta -----------------------------------------------------------------

    def save_meta(self, campaign_id: str, meta: Dict[str, Any]) -> None:
        self.redis.set(
            _meta_key(campaign_id),
            json.dumps(meta, ensure_ascii=False),
            ex=settings.campaign_ttl_seconds,
        )

    def get_meta(self, campaign_id: str) -> Optional[Dict[str, Any]]:
        raw = self.redis.get(_meta_key(campaign_id))
        if not raw:
            return None
        try:
            meta = json.loads(raw)
        except (TypeError, ValueError):
            return None
        return meta if isinstance(meta, dict) else None

    # Lista global -----------------------------------------------------------

    def push_to_list(self, campaign_id: str) -> None:
        with self.redis.pipeline() as pipe:
            pipe.lpush(CAMPAIGNS_LIST_KEY, campaign_id)
            pipe.ltrim(CAMPAIGNS_LIST_KEY, 0, settings.CAMPAIGN_LIST_MAX - 1)
            pipe.execute()

    def list_ids(self, limit: int) -> List[str]:
        return [str(item) for item in self.redis.lrange(CAMPAIGNS_LIST_KEY, 0, limit - 1)]

    # Sent / pending ---------------------------------------------------------

    def add_sent(self, campaign_id: str, user_id: str) -> None:
        self.redis.sadd(_sent_key(campaign_id), user_id)

    def add_pending(self, campaign_id: str, user_ids: Iterable[str]) -> int:
        members = [str(user_id) for user_id in user_ids if user_id]
        if not members:
            return 0
        return int(self.redis.sadd(_pending_key(campaign_id), *members))

    def move_to_sent(self, campaign_id: str, user_id: str) -> None:
        """pending -> sent na mesma transação (MULTI/EXEC)."""

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.sadd(_sent_key(campaign_id), user_id)
            pipe.srem(_pending_key(campaign_id), user_id)
            pipe.execute()

    def remove_pending(self, campaign_id: str, user_id: str) -> None:
        self.redis.srem(_pending_key(campaign_id), user_id)

    def is_pending(self, campaign_id: str, user_id: str) -> bool:
        return bool(self.redis.sismember(_pending_key(campaign_id), user_id))

    def is_sent(self, campaign_id: str, user_id: str) -> bool:
        return bool(self.redis.sismember(_sent_key(campaign_id), user_id))

    def pending_members(self, campaign_id: str) -> List[str]:
        return sorted(str(m) for m in self.redis.smembers(_pending_key(campaign_id)))

    def sent_members(self, campaign_id: str) -> List[str]:
        return sorted(str(m) for m in self.redis.smembers(_sent_key(campaign_id)))

    def pending_count(self, campaign_id: str) -> int:
        return int(self.redis.scard(_pending_key(campaign_id)) or 0)

    def sent_count(self, campaign_id: str) -> int:
        return int(self.redis.scard(_sent_key(campaign_id)) or 0)

    # Log de erros -----------------------------------------------------------

    def push_error(self, campaign_id: str, entry: Dict[str, Any]) -> None:
        with self.redis.pipeline() as pipe:
            pipe.lpush(_errors_key(campaign_id), json.dumps(entry, ensure_ascii=False))
            pipe.ltrim(_errors_key(campaign_id), 0, settings.CAMPAIGN_ERRORS_MAX - 1)
            pipe.execute()

    def error_entries(self, campaign_id: str, limit: Optional[int] = None) -> List[str]:
        cap = settings.CAMPAIGN_ERRORS_MAX
        lim = cap if limit is None else max(1, min(cap, int(limit)))
        return list(self.redis.lrange(_errors_key(campaign_id), 0, lim - 1))

    # Índice de campanhas pendentes -----------------------------------------

    def add_pending_campaign(self, campaign_id: str) -> None:
        self.redis.sadd(PENDING_CAMPAIGNS_KEY, campaign_id)

    def remove_pending_campaign(self, campaign_id: str) -> None:
        self.redis.srem(PENDING_CAMPAIGNS_KEY, campaign_id)

    def pending_campaign_ids(self) -> List[str]:
        return sorted(str(m) for m in self.redis.smembers(PENDING_CAMPAIGNS_KEY))

    def is_pending_campaign(self, campaign_id: str) -> bool:
        return bool(self.redis.sismember(PENDING_CAMPAIGNS_KEY, campaign_id))

    # TTL ------------------------------------------------------------------

    def refresh_ttl(self, campaign_id: str) -> None:
        ttl = settings.campaign_ttl_seconds
        with self.redis.pipeline() as pipe:
            pipe.expire(_meta_key(campaign_id), ttl)
            pipe.expire(_errors_key(campaign_id), ttl)
            # SET não expira por membro, mas a key inteira sim
            pipe.expire(_sent_key(campaign_id), ttl)
            pipe.expire(_pending_key(campaign_id), ttl)
            pipe.execute()

    def refresh_list_ttl(self) -> None:
        self.redis.expire(CAMPAIGNS_LIST_KEY, settings.campaign_ttl_seconds)


__all__ = [
    "CAMPAIGNS_LIST_KEY",
    "PENDING_CAMPAIGNS_KEY",
    "CampaignRepository",
]

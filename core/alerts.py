"""Alertas de sistema persistidos no Redis (diagnóstico rápido em produção)."""

from __future__ import annotations

import json
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import redis

from core.config import settings
from core.metrics import inc_event
from core.telemetry import logger

ALERTS_KEY = "alerts:system"


class SystemAlerts:
    """Sink de observabilidade: LIST ``alerts:system`` limitada e com TTL.

    ``emit`` nunca propaga erro; o alerta não pode derrubar o fluxo principal.
    """

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        if client is None:
            from core.redis_client import redis_client

            client = redis_client
        self.redis = client

    def emit(self, event: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        entry = {
            "id": f"al_{int(time.time() * 1000)}_{random.randint(0, 999999)}",
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": (event or "").strip() or "UNKNOWN",
            "payload": payload if isinstance(payload, dict) else {"info": str(payload or "")},
        }

        inc_event(entry["event"])
        logger.info(
            "System alert",
            extra={"event": entry["event"], "payload": entry["payload"]},
        )

        try:
            with self.redis.pipeline() as pipe:
                pipe.lpush(ALERTS_KEY, json.dumps(entry, default=str))
                pipe.ltrim(ALERTS_KEY, 0, settings.ALERTS_MAX - 1)
                pipe.expire(ALERTS_KEY, settings.alerts_ttl_seconds)
                pipe.execute()
        except redis.RedisError as exc:
            logger.warning(
                "Failed to push system alert",
                extra={"event": entry["event"], "error": str(exc)},
            )
        return entry

    def list(self, limit: int = 50) -> List[Dict[str, Any]]:
        lim = max(1, min(200, int(limit or 50)))
        items: List[Dict[str, Any]] = []
        for raw in self.redis.lrange(ALERTS_KEY, 0, lim - 1):
            try:
                items.append(json.loads(raw))
            except (TypeError, ValueError):
                items.append({"ts": "", "event": "PARSE_ERROR", "payload": {"raw": str(raw)}})
        return items

    def count(self) -> int:
        return int(self.redis.llen(ALERTS_KEY) or 0)


__all__ = ["ALERTS_KEY", "SystemAlerts"]

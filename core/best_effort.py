"""Execução "fire-and-forget" para escritas não críticas (TTL, alertas)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import redis

from core.telemetry import logger


@dataclass(frozen=True)
class BestEffortResult:
    """Resultado que o chamador pode inspecionar, mas não é obrigado."""

    ok: bool
    value: Any = None
    error: Optional[str] = None


def best_effort(
    tag: str,
    fn: Callable[..., Any],
    *args: Any,
    default: Any = None,
    context: Optional[dict] = None,
    **kwargs: Any,
) -> BestEffortResult:
    """Executa ``fn`` engolindo falhas do Redis com um warning estruturado."""

    try:
        return BestEffortResult(ok=True, value=fn(*args, **kwargs))
    except redis.RedisError as exc:
        logger.warning(
            "Best-effort store operation failed",
            extra={"tag": tag, "error": str(exc), **(context or {})},
        )
        return BestEffortResult(ok=False, value=default, error=str(exc))


__all__ = ["BestEffortResult", "best_effort"]

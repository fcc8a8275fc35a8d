"""Tasks de inbound (janela 24h + pendências) e reprocessamento de campanhas."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from core.telemetry import logger
from services.broadcast.runtime import build_runtime, handle_inbound

from .celery_app import celery_app


@celery_app.task
def process_inbound_message(wa_id: str, ts_ms: Optional[int] = None) -> dict:
    """Marca a janela de 24h e entrega campanhas pendentes do usuário."""

    runtime = build_runtime()
    touch, sweep = asyncio.run(handle_inbound(runtime, wa_id, ts_ms))
    logger.debug(
        "Inbound processed",
        extra={"user_id": touch.user_id, "processed": sweep.processed},
    )
    return {
        "userId": touch.user_id,
        "windowEndsAtMs": touch.window_ends_at_ms,
        "processed": sweep.processed,
    }


@celery_app.task
def create_campaign_task(
    subject: str,
    text: str,
    plan_targets: Optional[List[str]] = None,
    mode: str = "TEXT",
) -> dict:
    """Cria a campanha e faz o envio imediato fora do request HTTP."""

    runtime = build_runtime()
    summary = asyncio.run(
        runtime.dispatcher.create(
            subject=subject, text=text, plan_targets=plan_targets, mode=mode
        )
    )
    return summary.to_dict()


@celery_app.task
def reprocess_campaign_task(campaign_id: str, limit: int = 5000) -> dict:
    runtime = build_runtime()
    result = asyncio.run(
        runtime.reconciler.reprocess_campaign(campaign_id, limit=limit)
    )
    return result.to_dict()


__all__ = [
    "create_campaign_task",
    "process_inbound_message",
    "reprocess_campaign_task",
]

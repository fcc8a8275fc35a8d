"""
FastAPI Webhook Receiver para o assistente WhatsApp (janela 24h + campanhas)
"""

import asyncio
import time
from collections import deque
from typing import Any, Deque, Dict, Iterator, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.errors import InvalidArgument
from core.telemetry import logger
from services.broadcast.messages import require_campaign_fields, validate_campaign_id
from services.broadcast.runtime import build_runtime
from workers.broadcast_tasks import (
    create_campaign_task,
    process_inbound_message,
    reprocess_campaign_task,
)

app = FastAPI(title="WhatsApp Broadcast Core")

# Cache de message ids já processados (mantém últimos 1000)
PROCESSED_MESSAGES: Deque[str] = deque(maxlen=1000)


class CampaignIn(BaseModel):
    subject: str = ""
    text: str = ""
    planTargets: Optional[List[str]] = None
    mode: str = "TEXT"


class TouchIn(BaseModel):
    waId: str


def iter_inbound_messages(payload: Dict[str, Any]) -> Iterator[Tuple[str, str]]:
    """Extrai (wa_id, message_id) do payload da Cloud API"""
    for entry in payload.get("entry") or []:
        for change in entry.get("changes") or []:
            value = change.get("value") or {}
            for message in value.get("messages") or []:
                wa_id = str(message.get("from") or "").strip()
                if not wa_id:
                    continue
                yield wa_id, str(message.get("id") or "")


@app.post("/webhook/whatsapp")
async def whatsapp_webhook(request: Request):
    """Recebe mensagens inbound e enfileira o processamento"""
    try:
        payload = await request.json()
        queued = 0
        for wa_id, message_id in iter_inbound_messages(payload):
            # Verificar duplicação
            if message_id and message_id in PROCESSED_MESSAGES:
                continue
            if message_id:
                PROCESSED_MESSAGES.append(message_id)

            # janela conta a partir do processamento, não do timestamp da Meta
            process_inbound_message.delay(wa_id)
            queued += 1

        logger.debug("WhatsApp inbound queued", extra={"queued": queued})
        return JSONResponse({"ok": True}, status_code=200)

    except Exception as e:
        # Em caso de erro, ainda retornar OK para evitar retransmissão
        logger.error(
            "Error processing whatsapp webhook",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        return JSONResponse({"ok": False}, status_code=200)


# Endpoints admin usam redis-py síncrono: rodam no threadpool do FastAPI


@app.post("/admin/campaigns")
def create_campaign(body: CampaignIn, background: bool = False):
    try:
        if background:
            require_campaign_fields(body.subject, body.text)
            create_campaign_task.delay(body.subject, body.text, body.planTargets, body.mode)
            return {"ok": True, "queued": True}

        summary = asyncio.run(
            build_runtime().dispatcher.create(
                subject=body.subject,
                text=body.text,
                plan_targets=body.planTargets,
                mode=body.mode,
            )
        )
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"ok": True, "campaign": summary.to_dict()}


@app.get("/admin/campaigns")
def list_campaigns(limit: int = 30):
    campaigns = build_runtime().dispatcher.list(limit)
    return {
        "ok": True,
        "count": len(campaigns),
        "campaigns": [item.to_dict() for item in campaigns],
    }


@app.get("/admin/campaigns/{campaign_id}")
def get_campaign(campaign_id: str):
    dispatcher = build_runtime().dispatcher
    try:
        summary = dispatcher.get(campaign_id)
        errors = dispatcher.recent_errors(campaign_id)
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if summary.meta is None:
        raise HTTPException(status_code=404, detail="campaign not found")
    return {"ok": True, "campaign": summary.to_dict(), "errors": errors}


@app.post("/admin/campaigns/{campaign_id}/reprocess")
def reprocess_campaign(campaign_id: str, limit: int = 5000, background: bool = False):
    try:
        cid = validate_campaign_id(campaign_id)
        if background:
            reprocess_campaign_task.delay(cid, limit)
            return {"ok": True, "queued": True}

        result = asyncio.run(build_runtime().reconciler.reprocess_campaign(cid, limit=limit))
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"ok": True, "result": result.to_dict()}


@app.get("/admin/window24h")
def window_summary(limit: int = 100):
    tracker = build_runtime().tracker
    now = int(time.time() * 1000)
    return {
        "ok": True,
        "nowMs": now,
        "count": tracker.count_reachable(now),
        "users": tracker.list_reachable(now, max(1, min(500, limit))),
    }


@app.post("/admin/window24h/touch")
def window_touch(body: TouchIn):
    tracker = build_runtime().tracker
    try:
        touch = tracker.touch(body.waId)
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "ok": True,
        "waId": touch.user_id,
        "lastInboundAtMs": touch.last_inbound_at_ms,
        "windowEndsAtMs": touch.window_ends_at_ms,
    }


@app.get("/admin/alerts")
def list_alerts(limit: int = 50):
    alerts = build_runtime().alerts
    return {"ok": True, "count": alerts.count(), "alerts": alerts.list(limit)}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event():
    """Executado quando a aplicação inicia"""
    logger.info("Application starting...")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)  # nosec B104

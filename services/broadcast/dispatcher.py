"""Criação e despacho de campanhas respeitando a janela de 24h."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import redis

from core.alerts import SystemAlerts
from core.best_effort import best_effort
from core.config import settings
from core.metrics import inc_message
from core.telemetry import logger
from database.campaign_repo import CampaignRepository
from database.user_repo import UserDirectory
from services.window.tracker import EngagementWindowTracker, now_ms
from services.whatsapp.client import WhatsAppCloudAPI

from .bookkeeping import CampaignBookkeeping, MessageTransport
from .messages import (
    build_message,
    make_campaign_id,
    normalize_plan_targets,
    require_campaign_fields,
    safe_str,
    validate_campaign_id,
)
from .types import CampaignStats, CampaignSummary


class CampaignDispatcher:
    """Cria campanhas e entrega na hora para quem está dentro da janela.

    Quem está fora da janela vira pendente e é tratado pela reconciliação.
    """

    def __init__(
        self,
        *,
        campaigns: Optional[CampaignRepository] = None,
        users: Optional[UserDirectory] = None,
        tracker: Optional[EngagementWindowTracker] = None,
        transport: Optional[MessageTransport] = None,
        alerts: Optional[SystemAlerts] = None,
    ) -> None:
        self.campaigns = campaigns or CampaignRepository()
        self.users = users or UserDirectory()
        self.tracker = tracker or EngagementWindowTracker(users=self.users)
        self.transport = transport or WhatsAppCloudAPI()
        self.books = CampaignBookkeeping(self.campaigns, alerts or SystemAlerts())

    async def create(
        self,
        *,
        subject: str,
        text: str,
        plan_targets: Union[None, str, Iterable[str]] = None,
        mode: str = "TEXT",
    ) -> CampaignSummary:
        subj, body = require_campaign_fields(subject, text)

        plans = normalize_plan_targets(plan_targets)
        campaign_id = make_campaign_id()
        targets = self.resolve_targets(plans)

        reachable = set(
            self.tracker.list_reachable(now_ms(), settings.CAMPAIGN_WINDOW_FETCH_MAX)
        )
        send_now, pending = self._partition(targets, reachable)

        meta = {
            "id": campaign_id,
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "subject": subj,
            "mode": safe_str(mode).upper() or "TEXT",
            "planTargets": plans,
            "text": body,
            "totals": {
                "totalTargets": len(targets),
                "sendNow": len(send_now),
                "pending": len(pending),
            },
        }
        self.campaigns.save_meta(campaign_id, meta)
        self.campaigns.push_to_list(campaign_id)
        best_effort("campaign_list_ttl", self.campaigns.refresh_list_ttl)

        message = build_message(subj, body)
        sent = 0
        for user_id in send_now:
            try:
                await self.transport.send_text(user_id, message)
            except Exception as exc:  # falha do transporte fica contida no destinatário
                # Falha no envio imediato: registra e descarta (não vira pendente)
                self.books.record_error(campaign_id, user_id, exc, stage="send_now")
                continue
            self.campaigns.add_sent(campaign_id, user_id)
            inc_message("send_now", "sent")
            sent += 1

        if pending:
            self.campaigns.add_pending(campaign_id, pending)
            self.campaigns.add_pending_campaign(campaign_id)

        self.books.refresh_ttl(campaign_id)

        logger.info(
            "Campaign created",
            extra={
                "campaign_id": campaign_id,
                "total_targets": len(targets),
                "send_now": len(send_now),
                "sent": sent,
                "pending": len(pending),
            },
        )
        self.books.emit(
            "CAMPAIGN_CREATED",
            {
                "id": campaign_id,
                "totalTargets": len(targets),
                "sendNow": len(send_now),
                "sent": sent,
                "pending": len(pending),
                "planTargets": plans,
                "mode": meta["mode"],
            },
        )
        return self.get(campaign_id)

    def resolve_targets(self, plans: List[str]) -> List[str]:
        """Público alvo: todos os usuários conhecidos, filtrados por plano."""

        targets = self.users.list_all_known_users()
        if not plans:
            return targets

        wanted = set(plans)
        filtered: List[str] = []
        for user_id in targets:
            lookup = best_effort(
                "campaign_plan_lookup",
                self.users.get_plan_code,
                user_id,
                context={"user_id": user_id},
            )
            # erro em um usuário específico não pode quebrar a campanha
            if lookup.ok and safe_str(lookup.value).upper() in wanted:
                filtered.append(user_id)
        return filtered

    @staticmethod
    def _partition(targets: List[str], reachable: set) -> Tuple[List[str], List[str]]:
        send_now: List[str] = []
        pending: List[str] = []
        for user_id in targets:
            if str(user_id) in reachable:
                send_now.append(str(user_id))
            else:
                pending.append(str(user_id))
        return send_now, pending

    def get(self, campaign_id) -> CampaignSummary:
        cid = validate_campaign_id(campaign_id)
        meta = self.campaigns.get_meta(cid)
        context = {"campaign_id": cid}

        sent = best_effort("campaign_sent_count", self.campaigns.sent_count, cid, default=0, context=context)
        pending = best_effort(
            "campaign_pending_count", self.campaigns.pending_count, cid, default=0, context=context
        )
        # aproximação via LRANGE limitado (o log nunca passa do teto)
        errors = best_effort(
            "campaign_errors_read", self.campaigns.error_entries, cid, default=[], context=context
        )

        return CampaignSummary(
            id=cid,
            meta=meta,
            stats=CampaignStats(
                sent=int(sent.value or 0),
                pending=int(pending.value or 0),
                errors=len(errors.value or []),
            ),
        )

    def list(self, limit: int = 30) -> List[CampaignSummary]:
        try:
            lim = int(limit)
        except (TypeError, ValueError):
            lim = 30
        lim = max(1, min(200, lim))

        summaries: List[CampaignSummary] = []
        for campaign_id in self.campaigns.list_ids(lim):
            try:
                summaries.append(self.get(campaign_id))
            except redis.RedisError as exc:
                logger.warning(
                    "Failed to load campaign summary",
                    extra={"campaign_id": campaign_id, "error": str(exc)},
                )
        return summaries

    def recent_errors(self, campaign_id, limit: int = 50) -> List[Dict[str, Any]]:
        cid = validate_campaign_id(campaign_id)
        entries: List[Dict[str, Any]] = []
        for raw in self.campaigns.error_entries(cid, limit):
            try:
                entries.append(json.loads(raw))
            except (TypeError, ValueError):
                entries.append({"raw": safe_str(raw)})
        return entries


__all__ = ["CampaignDispatcher"]

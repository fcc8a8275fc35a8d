"""Reconciliação de pendências de campanhas (varredura manual e automática)."""

from __future__ import annotations

from typing import Optional

import redis

from core.alerts import SystemAlerts
from core.config import settings
from core.errors import CorruptedState
from core.metrics import inc_message
from core.telemetry import logger
from database.campaign_repo import CampaignRepository
from services.window.tracker import EngagementWindowTracker, now_ms
from services.whatsapp.client import WhatsAppCloudAPI

from .bookkeeping import CampaignBookkeeping, MessageTransport
from .messages import safe_str, validate_campaign_id
from .types import ReprocessResult, SweepResult


class PendingReconciler:
    """Entrega pendências para usuários que voltaram à janela de 24h.

    Não há índice reverso usuário -> campanhas: a varredura automática
    percorre o índice de campanhas com pendência.
    """

    def __init__(
        self,
        *,
        campaigns: Optional[CampaignRepository] = None,
        tracker: Optional[EngagementWindowTracker] = None,
        transport: Optional[MessageTransport] = None,
        alerts: Optional[SystemAlerts] = None,
    ) -> None:
        self.campaigns = campaigns or CampaignRepository()
        self.tracker = tracker or EngagementWindowTracker()
        self.transport = transport or WhatsAppCloudAPI()
        self.books = CampaignBookkeeping(self.campaigns, alerts or SystemAlerts())

    async def reprocess_campaign(self, campaign_id, *, limit: int = 5000) -> ReprocessResult:
        """Reenvia a campanha APENAS para pendentes que estão na janela agora."""

        cid = validate_campaign_id(campaign_id)
        try:
            lim = int(limit)
        except (TypeError, ValueError):
            lim = 5000
        lim = max(1, min(settings.CAMPAIGN_WINDOW_FETCH_MAX, lim))

        try:
            message = self.books.load_message(cid)
        except CorruptedState as exc:
            logger.error(
                "Campaign reprocess skipped",
                extra={"campaign_id": cid, "error": str(exc)},
            )
            # nada é tocado: pendentes continuam como estavam
            pending = self.campaigns.pending_count(cid)
            return ReprocessResult(
                campaign_id=cid, pending_before=pending, pending_after=pending
            )

        window = self.tracker.list_reachable(now_ms(), lim)
        window_set = set(window)
        pending = self.campaigns.pending_members(cid)
        attempted_ids = [user_id for user_id in pending if user_id in window_set]

        result = ReprocessResult(
            campaign_id=cid,
            window_active=len(window),
            pending_before=len(pending),
            attempted=len(attempted_ids),
        )

        for user_id in attempted_ids:
            try:
                await self.transport.send_text(user_id, message)
            except Exception as exc:  # mantém pendente para a próxima tentativa
                result.errors += 1
                self.books.record_error(cid, user_id, exc, stage="reprocess")
                continue
            self.campaigns.move_to_sent(cid, user_id)
            inc_message("reprocess", "sent")
            result.sent += 1

        result.pending_after = self.books.sync_pending_index(cid)
        self.books.refresh_ttl(cid)

        logger.info("Campaign reprocessed", extra=result.to_dict())
        self.books.emit(
            "CAMPAIGN_REPROCESSED",
            {
                "id": cid,
                "pendingBefore": result.pending_before,
                "attempted": result.attempted,
                "sent": result.sent,
                "errors": result.errors,
                "pendingAfter": result.pending_after,
            },
        )
        return result

    async def auto_sweep_for_user(self, user_id) -> SweepResult:
        """Chamado a cada inbound, depois do touch na janela.

        Retorna quantas campanhas mudaram de estado para o usuário
        (envio ou remoção de pendência inválida). Falha do Redis em uma
        campanha não impede as demais.
        """

        uid = safe_str(user_id)
        result = SweepResult(user_id=uid)
        if not uid:
            return result

        for campaign_id in self.campaigns.pending_campaign_ids():
            if not campaign_id:
                continue
            try:
                result.processed += await self._sweep_campaign(campaign_id, uid)
            except redis.RedisError as exc:
                # pendência continua lá; próximo inbound tenta de novo
                logger.warning(
                    "Pending campaign sweep failed",
                    extra={"campaign_id": campaign_id, "user_id": uid, "error": str(exc)},
                )

        if result.processed:
            logger.info("Pending campaigns delivered", extra=result.to_dict())
        return result

    async def _sweep_campaign(self, campaign_id: str, uid: str) -> int:
        if not self.campaigns.is_pending(campaign_id, uid):
            return 0

        processed = 0
        try:
            message = self.books.load_message(campaign_id)
        except CorruptedState as exc:
            # meta corrompida: pendência impossível de resolver
            self.campaigns.remove_pending(campaign_id, uid)
            self.books.record_error(
                campaign_id,
                uid,
                f"{exc} (auto-send skipped)",
                stage="auto_sweep",
            )
            processed = 1
        else:
            try:
                await self.transport.send_text(uid, message)
            except Exception as exc:  # continua pendente até o próximo inbound
                self.books.record_error(campaign_id, uid, exc, stage="auto_sweep")
            else:
                self.campaigns.move_to_sent(campaign_id, uid)
                inc_message("auto_sweep", "sent")
                processed = 1

        self.books.sync_pending_index(campaign_id)
        self.books.refresh_ttl(campaign_id)
        return processed


__all__ = ["PendingReconciler"]

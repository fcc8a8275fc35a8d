"""Escritas auxiliares compartilhadas pelo dispatcher e pela reconciliação."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from core.alerts import SystemAlerts
from core.best_effort import best_effort
from core.errors import CorruptedState
from core.metrics import inc_message
from core.telemetry import logger
from database.campaign_repo import CampaignRepository

from .messages import build_message, safe_str, truncate_error


class MessageTransport(Protocol):
    async def send_text(self, to: str, text: str) -> Dict[str, Any]:
        ...


class CampaignBookkeeping:
    """Log de erros, TTL e autocorreção do índice de campanhas pendentes."""

    def __init__(
        self,
        campaigns: CampaignRepository,
        alerts: SystemAlerts,
    ) -> None:
        self.campaigns = campaigns
        self.alerts = alerts

    def record_error(self, campaign_id: str, user_id: str, error, *, stage: str) -> None:
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "userId": safe_str(user_id),
            "stage": stage,
            "error": truncate_error(error),
        }
        inc_message(stage, "error")
        logger.warning(
            "Campaign delivery error",
            extra={"campaign_id": campaign_id, **entry},
        )
        best_effort(
            "campaign_push_error",
            self.campaigns.push_error,
            campaign_id,
            entry,
            context={"campaign_id": campaign_id},
        )
        self.refresh_ttl(campaign_id)

    def refresh_ttl(self, campaign_id: str) -> None:
        best_effort(
            "campaign_refresh_ttl",
            self.campaigns.refresh_ttl,
            campaign_id,
            context={"campaign_id": campaign_id},
        )

    def sync_pending_index(self, campaign_id: str) -> int:
        """Recalcula a cardinalidade de pending e ajusta o índice global."""

        pending_left = self.campaigns.pending_count(campaign_id)
        if pending_left == 0:
            self.campaigns.remove_pending_campaign(campaign_id)
        else:
            self.campaigns.add_pending_campaign(campaign_id)
        return pending_left

    def load_message(self, campaign_id: str, meta: Optional[Dict[str, Any]] = None) -> str:
        if meta is None:
            meta = self.campaigns.get_meta(campaign_id)
        if not meta:
            raise CorruptedState(f"Campaign meta not found: {campaign_id}")
        if not safe_str(meta.get("text")):
            raise CorruptedState(f"Campaign meta missing text: {campaign_id}")
        return build_message(meta.get("subject"), meta.get("text"))

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        self.alerts.emit(event, payload)


__all__ = ["CampaignBookkeeping", "MessageTransport"]

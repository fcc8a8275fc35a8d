"""Runtime helpers wiring repositories, transport and broadcast services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import redis

from core.alerts import SystemAlerts
from core.telemetry import logger
from database.campaign_repo import CampaignRepository
from database.user_repo import UserDirectory
from database.window_repo import WindowRepository
from services.window.tracker import EngagementWindowTracker, WindowTouch
from services.whatsapp.client import WhatsAppCloudAPI

from .bookkeeping import MessageTransport
from .dispatcher import CampaignDispatcher
from .reconciler import PendingReconciler
from .types import SweepResult


@dataclass
class BroadcastRuntime:
    tracker: EngagementWindowTracker
    dispatcher: CampaignDispatcher
    reconciler: PendingReconciler
    alerts: SystemAlerts


def build_runtime(
    client: Optional[redis.Redis] = None,
    transport: Optional[MessageTransport] = None,
) -> BroadcastRuntime:
    if client is None:
        from core.redis_client import redis_client

        client = redis_client
    transport = transport or WhatsAppCloudAPI()

    users = UserDirectory(client)
    campaigns = CampaignRepository(client)
    alerts = SystemAlerts(client)
    tracker = EngagementWindowTracker(WindowRepository(client), users)
    return BroadcastRuntime(
        tracker=tracker,
        dispatcher=CampaignDispatcher(
            campaigns=campaigns,
            users=users,
            tracker=tracker,
            transport=transport,
            alerts=alerts,
        ),
        reconciler=PendingReconciler(
            campaigns=campaigns,
            tracker=tracker,
            transport=transport,
            alerts=alerts,
        ),
        alerts=alerts,
    )


async def handle_inbound(
    runtime: BroadcastRuntime, user_id, at_ms: Optional[int] = None
) -> Tuple[WindowTouch, SweepResult]:
    """Inbound: renova a janela e depois entrega pendências do usuário."""

    touch = runtime.tracker.touch(user_id, at_ms)
    try:
        sweep = await runtime.reconciler.auto_sweep_for_user(touch.user_id)
    except redis.RedisError as exc:
        # pendências ficam para o próximo inbound; o fluxo principal segue
        logger.warning(
            "Process pending campaigns failed",
            extra={"user_id": touch.user_id, "error": str(exc)},
        )
        sweep = SweepResult(user_id=touch.user_id)
    return touch, sweep


__all__ = ["BroadcastRuntime", "build_runtime", "handle_inbound"]

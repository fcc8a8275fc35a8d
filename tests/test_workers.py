"""
Testes para workers e tasks do Celery
"""

import asyncio
from unittest.mock import AsyncMock, patch

import redis

from services.window.tracker import WINDOW_MS, now_ms
from workers.broadcast_tasks import (
    create_campaign_task,
    process_inbound_message,
    reprocess_campaign_task,
)


class TestInboundProcessing:
    """Inbound: janela 24h + pendências"""

    def test_pending_created_then_delivered_on_inbound(self, runtime, stale_user):
        stale_user("B")
        summary = asyncio.run(runtime.dispatcher.create(subject="S", text="T"))

        with patch("workers.broadcast_tasks.build_runtime", return_value=runtime):
            result = process_inbound_message.apply(args=["B"]).get()

        assert result["userId"] == "B"
        assert result["processed"] == 1
        assert runtime.dispatcher.get(summary.id).stats.sent == 1

    def test_inbound_window_starts_at_processing_time(self, runtime):
        with patch("workers.broadcast_tasks.build_runtime", return_value=runtime):
            before = now_ms()
            result = process_inbound_message.apply(args=["B"]).get()

        assert result["windowEndsAtMs"] >= before + WINDOW_MS
        assert runtime.tracker.is_reachable("B", now_ms())

    def test_sweep_store_failure_does_not_fail_inbound(self, runtime):
        runtime.reconciler.auto_sweep_for_user = AsyncMock(
            side_effect=redis.ConnectionError("down")
        )

        with patch("workers.broadcast_tasks.build_runtime", return_value=runtime):
            result = process_inbound_message.apply(args=["B", 1_700_000_000_000]).get()

        assert result["processed"] == 0
        assert result["windowEndsAtMs"] == 1_700_000_000_000 + 24 * 60 * 60 * 1000


class TestReprocessTask:
    """Reprocessamento fora do request"""

    def test_reprocess_task(self, runtime, stale_user, reachable_user):
        stale_user("B")
        summary = asyncio.run(runtime.dispatcher.create(subject="S", text="T"))
        reachable_user("B")

        with patch("workers.broadcast_tasks.build_runtime", return_value=runtime):
            result = reprocess_campaign_task.apply(args=[summary.id, 100]).get()

        assert result["campaign_id"] == summary.id
        assert result["sent"] == 1
        assert result["pending_after"] == 0


class TestCreateCampaignTask:
    """Criação de campanha fora do request"""

    def test_create_campaign_task(self, runtime, transport, reachable_user, stale_user):
        reachable_user("A", plan="PRO")
        stale_user("B", plan="PRO")

        with patch("workers.broadcast_tasks.build_runtime", return_value=runtime):
            result = create_campaign_task.apply(args=["S", "T", ["pro"]]).get()

        assert result["stats"]["sent"] == 1
        assert result["stats"]["pending"] == 1
        transport.send_text.assert_awaited_once_with("A", "*S*\n\nT")

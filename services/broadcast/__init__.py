"""Campanhas de broadcast com janela de 24h."""

from .dispatcher import CampaignDispatcher
from .messages import build_message, make_campaign_id, normalize_plan_targets
from .reconciler import PendingReconciler
from .types import CampaignStats, CampaignSummary, ReprocessResult, SweepResult

__all__ = [
    "CampaignDispatcher",
    "CampaignStats",
    "CampaignSummary",
    "PendingReconciler",
    "ReprocessResult",
    "SweepResult",
    "build_message",
    "make_campaign_id",
    "normalize_plan_targets",
]

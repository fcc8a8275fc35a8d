"""Shared data structures for broadcast services."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class CampaignStats:
    sent: int = 0
    pending: int = 0
    errors: int = 0


@dataclass
class CampaignSummary:
    id: str
    meta: Optional[Dict[str, Any]]
    stats: CampaignStats

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReprocessResult:
    campaign_id: str
    window_active: int = 0
    pending_before: int = 0
    attempted: int = 0
    sent: int = 0
    errors: int = 0
    pending_after: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SweepResult:
    user_id: str
    processed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["CampaignStats", "CampaignSummary", "ReprocessResult", "SweepResult"]

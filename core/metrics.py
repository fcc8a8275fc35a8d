"""Métricas Prometheus para o fluxo de campanhas."""

from __future__ import annotations

from prometheus_client import Counter

BROADCAST_MESSAGES = Counter(
    "broadcast_messages_total",
    "Resultado dos envios de campanha por etapa",
    labelnames=("stage", "status"),
)

BROADCAST_EVENTS = Counter(
    "broadcast_events_total",
    "Eventos de observabilidade emitidos pelas campanhas",
    labelnames=("event",),
)


def inc_message(stage: str, status: str) -> None:
    BROADCAST_MESSAGES.labels(stage=stage, status=status).inc()


def inc_event(event: str) -> None:
    BROADCAST_EVENTS.labels(event=event).inc()


__all__ = [
    "inc_event",
    "inc_message",
]

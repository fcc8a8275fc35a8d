"""Rastreamento da janela de 24h de atendimento do WhatsApp."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Optional

from core.best_effort import best_effort
from core.errors import InvalidArgument
from core.telemetry import logger
from database.user_repo import UserDirectory
from database.window_repo import WindowRepository

WINDOW_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def window_ends_at_ms(at_ms: Optional[int] = None) -> int:
    return (now_ms() if at_ms is None else int(at_ms)) + WINDOW_MS


def _clean_id(user_id) -> str:
    value = str(user_id if user_id is not None else "").strip()
    if not value:
        raise InvalidArgument("Missing user id")
    return value


@dataclass(frozen=True)
class WindowTouch:
    user_id: str
    last_inbound_at_ms: int
    window_ends_at_ms: int


class EngagementWindowTracker:
    """Índice ordenado ``usuário -> fim da janela``.

    "Quem está alcançável agora" é uma consulta por score >= agora; a
    expiração é implícita, não existe job de limpeza.
    """

    def __init__(
        self,
        windows: Optional[WindowRepository] = None,
        users: Optional[UserDirectory] = None,
    ) -> None:
        self.windows = windows or WindowRepository()
        self.users = users or UserDirectory()

    def touch(self, user_id, at_ms: Optional[int] = None) -> WindowTouch:
        """Deve ser chamado em QUALQUER mensagem inbound do usuário."""

        uid = _clean_id(user_id)
        ts = now_ms() if at_ms is None else int(at_ms)
        end = ts + WINDOW_MS

        self.users.index_user(uid)
        self.windows.set_last_inbound(uid, ts)
        # Sobrescreve sempre: um replay atrasado pode encurtar a janela
        self.windows.upsert_expiry(uid, end)

        logger.debug(
            "Window touched",
            extra={"user_id": uid, "window_ends_at_ms": end},
        )
        return WindowTouch(user_id=uid, last_inbound_at_ms=ts, window_ends_at_ms=end)

    def is_reachable(self, user_id, at_ms: Optional[int] = None) -> bool:
        uid = _clean_id(user_id)
        ts = now_ms() if at_ms is None else int(at_ms)
        expiry = self.windows.get_expiry(uid)
        return expiry is not None and expiry >= ts

    def count_reachable(self, at_ms: Optional[int] = None) -> int:
        ts = now_ms() if at_ms is None else int(at_ms)
        return self.windows.count_active(ts)

    def list_reachable(self, at_ms: Optional[int] = None, limit: int = 500) -> List[str]:
        ts = now_ms() if at_ms is None else int(at_ms)
        return self.windows.list_active(ts, max(1, int(limit)))

    def get_last_inbound(self, user_id) -> int:
        return self.windows.get_last_inbound(_clean_id(user_id))

    def window_ends_at(self, user_id) -> Optional[int]:
        return self.windows.get_expiry(_clean_id(user_id))

    def clear_for_user(self, user_id) -> None:
        """Remove timestamp e entrada do índice; cada remoção é independente."""

        uid = _clean_id(user_id)
        context = {"user_id": uid}
        best_effort("window_clear_last_inbound", self.windows.delete_last_inbound, uid, context=context)
        best_effort("window_clear_index", self.windows.remove_expiry, uid, context=context)


__all__ = [
    "WINDOW_MS",
    "EngagementWindowTracker",
    "WindowTouch",
    "now_ms",
    "window_ends_at_ms",
]

"""
Configuração global do pytest
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fakeredis import FakeRedis

from services.broadcast.runtime import build_runtime
from services.window.tracker import WINDOW_MS, now_ms


@pytest.fixture(scope="function")
def fake_redis():
    """Cria instância fake do Redis para testes"""
    redis = FakeRedis(decode_responses=True)
    yield redis
    redis.flushall()


@pytest.fixture(scope="function")
def transport():
    """Transporte WhatsApp falso: entrega sempre com sucesso"""
    mock = MagicMock()
    mock.send_text = AsyncMock(return_value={"messages": [{"id": "wamid.TEST"}]})
    return mock


@pytest.fixture(scope="function")
def runtime(fake_redis, transport):
    """Tracker, dispatcher e reconciliação ligados ao FakeRedis"""
    return build_runtime(fake_redis, transport)


@pytest.fixture
def reachable_user(runtime):
    """Registra usuário dentro da janela de 24h"""

    def _make(user_id: str, plan: str = "") -> str:
        runtime.tracker.touch(user_id, now_ms())
        if plan:
            runtime.dispatcher.users.set_plan_code(user_id, plan)
        return user_id

    return _make


@pytest.fixture
def stale_user(runtime):
    """Registra usuário cuja janela já expirou"""

    def _make(user_id: str, plan: str = "") -> str:
        runtime.tracker.touch(user_id, now_ms() - WINDOW_MS - 60_000)
        if plan:
            runtime.dispatcher.users.set_plan_code(user_id, plan)
        return user_id

    return _make

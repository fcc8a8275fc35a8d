"""
Testes para o cliente da WhatsApp Cloud API
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from core.errors import DeliveryFailure
from services.whatsapp.client import WhatsAppCloudAPI


def _mock_async_client(mock_client_class, *, post):
    mock_client = MagicMock()
    mock_client.post = post
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    mock_client_class.return_value = mock_client
    return mock_client


def _response(status_code, body):
    request = httpx.Request("POST", "https://graph.facebook.com/v22.0/123/messages")
    return httpx.Response(status_code, json=body, request=request)


class TestWhatsAppCloudAPI:
    """Testes para WhatsAppCloudAPI"""

    @pytest.mark.asyncio
    async def test_send_text_success(self):
        api = WhatsAppCloudAPI("EAATESTTOKEN", "123", api_version="v22.0")

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _mock_async_client(
                mock_client_class,
                post=AsyncMock(return_value=_response(200, {"messages": [{"id": "wamid.1"}]})),
            )

            result = await api.send_text("5511999990001", "Olá")

        assert result == {"messages": [{"id": "wamid.1"}]}
        call_args = mock_client.post.call_args
        assert call_args[0][0] == "https://graph.facebook.com/v22.0/123/messages"
        assert call_args[1]["json"] == {
            "messaging_product": "whatsapp",
            "to": "5511999990001",
            "type": "text",
            "text": {"body": "Olá"},
        }
        assert call_args[1]["headers"]["Authorization"] == "Bearer EAATESTTOKEN"

    @pytest.mark.asyncio
    async def test_send_text_api_error(self):
        api = WhatsAppCloudAPI("EAATESTTOKEN", "123")

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_async_client(
                mock_client_class,
                post=AsyncMock(
                    return_value=_response(400, {"error": {"message": "Re-engagement message"}})
                ),
            )

            with pytest.raises(DeliveryFailure) as excinfo:
                await api.send_text("5511999990001", "Olá")

        assert excinfo.value.status_code == 400
        assert "Re-engagement message" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_send_text_retries_connect_error(self):
        api = WhatsAppCloudAPI("EAATESTTOKEN", "123", max_retries=2)
        post = AsyncMock(
            side_effect=[
                httpx.ConnectError("refused"),
                _response(200, {"messages": []}),
            ]
        )

        with patch("httpx.AsyncClient") as mock_client_class, patch(
            "services.whatsapp.client.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            _mock_async_client(mock_client_class, post=post)
            result = await api.send_text("5511999990001", "Olá")

        assert result == {"messages": []}
        assert post.await_count == 2
        mock_sleep.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_send_text_gives_up_after_retries(self):
        api = WhatsAppCloudAPI("EAATESTTOKEN", "123", max_retries=2)

        with patch("httpx.AsyncClient") as mock_client_class, patch(
            "services.whatsapp.client.asyncio.sleep", new_callable=AsyncMock
        ):
            _mock_async_client(
                mock_client_class,
                post=AsyncMock(side_effect=httpx.ReadTimeout("slow")),
            )
            with pytest.raises(DeliveryFailure):
                await api.send_text("5511999990001", "Olá")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "token, phone_id, to, text",
        [
            ("", "123", "551199", "oi"),
            ("EAATESTTOKEN", "", "551199", "oi"),
            ("EAATESTTOKEN", "123", "", "oi"),
            ("EAATESTTOKEN", "123", "551199", ""),
        ],
    )
    async def test_send_text_validation(self, token, phone_id, to, text, monkeypatch):
        monkeypatch.setattr("core.config.settings.WHATSAPP_ACCESS_TOKEN", "")
        monkeypatch.setattr("core.config.settings.WHATSAPP_PHONE_NUMBER_ID", "")
        api = WhatsAppCloudAPI(token, phone_id)

        with pytest.raises(DeliveryFailure):
            await api.send_text(to, text)

"""
Cliente da WhatsApp Cloud API (Meta) para mensagens de texto
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from core.config import settings
from core.errors import DeliveryFailure
from core.telemetry import logger


class WhatsAppCloudAPI:
    """Transporte de saída: ``send_text`` entrega ou levanta ``DeliveryFailure``"""

    BASE_URL = "https://graph.facebook.com"

    def __init__(
        self,
        access_token: Optional[str] = None,
        phone_number_id: Optional[str] = None,
        *,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: int = 3,
    ) -> None:
        self.access_token = access_token or settings.WHATSAPP_ACCESS_TOKEN
        self.phone_number_id = phone_number_id or settings.WHATSAPP_PHONE_NUMBER_ID
        self.api_version = api_version or settings.WHATSAPP_API_VERSION
        self.timeout = timeout or settings.WHATSAPP_TIMEOUT_SECONDS
        self.max_retries = max_retries

    @property
    def messages_url(self) -> str:
        return f"{self.BASE_URL}/{self.api_version}/{self.phone_number_id}/messages"

    async def send_text(self, to: str, text: str) -> Dict[str, Any]:
        """Envia mensagem de texto livre (só funciona dentro da janela de 24h)"""
        if not self.access_token or not self.phone_number_id:
            raise DeliveryFailure("WhatsApp credentials not configured")
        if not to:
            raise DeliveryFailure("Missing recipient")
        if not text:
            raise DeliveryFailure("Missing text")

        payload = {
            "messaging_product": "whatsapp",
            "to": str(to),
            "type": "text",
            "text": {"body": str(text)},
        }
        headers = {"Authorization": f"Bearer {self.access_token}"}

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self.messages_url, json=payload, headers=headers
                    )
                    response.raise_for_status()
                    return response.json()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status in {429, 500, 502, 503, 504} and attempt < self.max_retries - 1:
                    await asyncio.sleep(2**attempt)
                    continue
                raise DeliveryFailure(
                    f"Meta send error: {self._error_message(exc.response)}",
                    status_code=status,
                ) from exc
            except (httpx.ConnectError, httpx.ReadTimeout) as exc:
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2**attempt)  # Exponential backoff: 1s, 2s, 4s
                    continue
                logger.error(
                    "WhatsApp request failed",
                    extra={"to": str(to), "error": str(exc)},
                )
                raise DeliveryFailure(f"Meta request failed: {exc}") from exc
            except httpx.HTTPError as exc:
                raise DeliveryFailure(f"Meta request failed: {exc}") from exc

        raise DeliveryFailure("Unable to reach WhatsApp API after retries")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return f"HTTP {response.status_code}"

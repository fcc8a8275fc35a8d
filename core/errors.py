"""Erros do núcleo de janela 24h e campanhas."""

from __future__ import annotations

from typing import Optional


class InvalidArgument(ValueError):
    """Argumento obrigatório ausente ou malformado."""


class MissingField(InvalidArgument):
    """Campo obrigatório da campanha ausente (assunto/texto)."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required field: {field}")
        self.field = field


class DeliveryFailure(Exception):
    """Falha ao entregar mensagem para um destinatário."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CorruptedState(Exception):
    """Meta da campanha ausente ou sem texto."""


__all__ = [
    "CorruptedState",
    "DeliveryFailure",
    "InvalidArgument",
    "MissingField",
]

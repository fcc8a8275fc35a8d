"""Helpers puros de campanha: ids, filtro de planos e corpo da mensagem."""

from __future__ import annotations

import random
import re
import time
from typing import Iterable, List, Optional, Tuple, Union

from core.errors import InvalidArgument, MissingField

PLAN_CODE_PATTERN = re.compile(r"^[A-Z0-9_]{3,40}$")
CAMPAIGN_ID_PATTERN = re.compile(r"^cp_\d{10,}_\d{1,6}$")
ERROR_MAX_CHARS = 500


def safe_str(value) -> str:
    return str(value if value is not None else "").strip()


def make_campaign_id(now_ms: Optional[int] = None) -> str:
    """Id ordenado por tempo: ``cp_{epoch_ms}_{aleatório}``."""

    ts = int(time.time() * 1000) if now_ms is None else int(now_ms)
    return f"cp_{ts}_{random.randint(0, 999999)}"


def validate_campaign_id(campaign_id) -> str:
    value = safe_str(campaign_id)
    if not value:
        raise InvalidArgument("campaign id required")
    if not CAMPAIGN_ID_PATTERN.match(value):
        raise InvalidArgument(f"Malformed campaign id: {value!r}")
    return value


def require_campaign_fields(subject, text) -> Tuple[str, str]:
    """Assunto e texto são obrigatórios; devolve ambos já limpos."""

    subj = safe_str(subject)
    body = safe_str(text)
    if not subj:
        raise MissingField("subject")
    if not body:
        raise MissingField("text")
    return subj, body


def normalize_plan_targets(plan_targets: Union[None, str, Iterable[str]]) -> List[str]:
    """Uppercase, valida o padrão e remove duplicados mantendo a ordem.

    Entradas inválidas são descartadas em silêncio.
    """

    if not plan_targets:
        return []
    items = [plan_targets] if isinstance(plan_targets, str) else list(plan_targets)
    normalized: List[str] = []
    for item in items:
        code = safe_str(item).upper()
        if code and PLAN_CODE_PATTERN.match(code) and code not in normalized:
            normalized.append(code)
    return normalized


def build_message(subject, text) -> str:
    s = safe_str(subject)
    t = safe_str(text)
    if s and t:
        return f"*{s}*\n\n{t}"
    if s:
        return f"*{s}*"
    return t


def truncate_error(error) -> str:
    return safe_str(error)[:ERROR_MAX_CHARS]


__all__ = [
    "CAMPAIGN_ID_PATTERN",
    "ERROR_MAX_CHARS",
    "PLAN_CODE_PATTERN",
    "build_message",
    "make_campaign_id",
    "normalize_plan_targets",
    "safe_str",
    "truncate_error",
    "validate_campaign_id",
]

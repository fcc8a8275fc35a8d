import pytest

from core.errors import InvalidArgument
from services.broadcast.messages import (
    build_message,
    make_campaign_id,
    normalize_plan_targets,
    truncate_error,
    validate_campaign_id,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, []),
        ("pro", ["PRO"]),
        (["pro", " Pro ", "BASICO"], ["PRO", "BASICO"]),
        (["ab", "com espaço", "x" * 41, "DE_VEZ_EM_QUANDO"], ["DE_VEZ_EM_QUANDO"]),
    ],
)
def test_normalize_plan_targets(raw, expected):
    assert normalize_plan_targets(raw) == expected


def test_build_message():
    assert build_message("Oferta", "Texto") == "*Oferta*\n\nTexto"
    assert build_message("Oferta", "") == "*Oferta*"
    assert build_message(None, " Texto ") == "Texto"


def test_campaign_id_is_time_ordered():
    campaign_id = make_campaign_id(1_700_000_000_000)
    assert campaign_id.startswith("cp_1700000000000_")
    assert validate_campaign_id(campaign_id) == campaign_id


@pytest.mark.parametrize("value", [None, "", "cp_", "cp_abc_1", "../etc"])
def test_validate_campaign_id_rejects(value):
    with pytest.raises(InvalidArgument):
        validate_campaign_id(value)


def test_truncate_error():
    assert truncate_error("  erro  ") == "erro"
    assert len(truncate_error("x" * 1000)) == 500

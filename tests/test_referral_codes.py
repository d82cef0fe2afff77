from __future__ import annotations

import pytest

from settlement.core.referral_codes import ALPHABET, generate_referral_code, normalize_referral_code


def test_generate_referral_code_uses_name_prefix() -> None:
    code = generate_referral_code("Anna")
    assert code.startswith("ANNA")
    assert len(code) == 8
    assert set(code[4:]).issubset(set(ALPHABET))


@pytest.mark.parametrize(
    ("display_name", "prefix"),
    [
        ("Jo", "JOXX"),
        ("DJ 8-ball", "DJXX"),
        (None, "USER"),
        ("", "USER"),
    ],
)
def test_generate_referral_code_pads_and_masks_prefix(display_name: str | None, prefix: str) -> None:
    assert generate_referral_code(display_name)[:4] == prefix


def test_generate_referral_code_custom_suffix_length() -> None:
    assert len(generate_referral_code("Mila", length=6)) == 10


def test_generate_referral_code_rejects_non_positive_length() -> None:
    with pytest.raises(ValueError):
        generate_referral_code("Mila", length=0)


def test_normalize_referral_code_is_case_insensitive() -> None:
    assert normalize_referral_code("  annaq7f3 ") == "ANNAQ7F3"

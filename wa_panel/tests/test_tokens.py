"""Tests for bearer token helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from wa_panel.auth.tokens import (
    clean_token,
    decode_payload,
    get_claim,
    get_expiry,
    is_token_expired,
    preview,
)
from wa_panel.tests.mocks.mock_services import make_token

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def token_expiring_in(seconds: int) -> str:
    return make_token({"exp": int((NOW + timedelta(seconds=seconds)).timestamp())})


class TestCleanToken:
    """Tests for clean_token function."""

    @pytest.mark.parametrize(
        "raw",
        [
            "abc.def.ghi",
            "Bearer abc.def.ghi",
            "bearer abc.def.ghi",
            '"abc.def.ghi"',
            '"Bearer abc.def.ghi"',
            'Bearer "abc.def.ghi"',
            "  Bearer abc.def.ghi  ",
        ],
    )
    def test_variants_normalize_to_bare_token(self, raw: str) -> None:
        assert clean_token(raw) == "abc.def.ghi"

    def test_empty(self) -> None:
        assert clean_token(None) == ""
        assert clean_token("   ") == ""


class TestExpiry:
    """Tests for expiry checks with the 60s safety margin."""

    def test_past_exp_is_expired(self) -> None:
        assert is_token_expired(token_expiring_in(-30), NOW) is True

    def test_exp_inside_margin_is_expired(self) -> None:
        assert is_token_expired(token_expiring_in(30), NOW) is True

    def test_future_exp_is_not_expired(self) -> None:
        assert is_token_expired(token_expiring_in(120), NOW) is False

    def test_string_exp(self) -> None:
        exp = str(int((NOW - timedelta(seconds=30)).timestamp()))
        assert is_token_expired(make_token({"exp": exp}), NOW) is True

    @pytest.mark.parametrize(
        "token",
        [None, "", "not-a-jwt", "a.!!!.c", make_token({"sub": "1"}), make_token({"exp": "soon"})],
    )
    def test_unknown_expiry_fails_open(self, token) -> None:
        assert get_expiry(token) is None
        assert is_token_expired(token, NOW) is False


class TestClaims:
    """Tests for claim decoding."""

    def test_decode_payload(self) -> None:
        assert decode_payload(make_token({"empresa_id": 7})) == {"empresa_id": 7}

    def test_claim_as_string(self) -> None:
        token = make_token({"empresa_id": 7, "name": "Ana"})
        assert get_claim(token, "EmpresaId", "empresa_id") == "7"
        assert get_claim(token, "missing") is None

    def test_url_safe_alphabet(self) -> None:
        token = make_token({"k": "ÿþ>>>???"})
        assert get_claim(token, "k") == "ÿþ>>>???"


def test_preview_never_leaks_full_token() -> None:
    token = "abcdefghijklmnopqrstuvwxyz"
    assert preview(token) == "Bearer abcdefghij..."
    assert preview("") == "(none)"

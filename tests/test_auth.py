"""Tests for session token minting and verification."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from src.middleware.auth import issue_session_token, verify_session_token


class TestSessionTokens:
    def test_issued_token_verifies(self) -> None:
        token = issue_session_token("farmer-1")
        assert verify_session_token(token) == "farmer-1"

    def test_owner_id_may_contain_dots(self) -> None:
        token = issue_session_token("user.name@example.com")
        assert verify_session_token(token) == "user.name@example.com"

    def test_tampered_owner_rejected(self) -> None:
        signature = issue_session_token("farmer-1").rpartition(".")[2]
        assert verify_session_token(f"farmer-2.{signature}") is None

    def test_tampered_signature_rejected(self) -> None:
        token = issue_session_token("farmer-1")
        assert verify_session_token(token[:-1] + ("0" if token[-1] != "0" else "1")) is None

    @pytest.mark.parametrize("token", ["", "farmer-1", ".abc", "farmer-1."])
    def test_malformed_tokens_rejected(self, token) -> None:
        assert verify_session_token(token) is None

    def test_token_from_other_secret_rejected(self) -> None:
        token = issue_session_token("farmer-1")
        with patch("src.middleware.auth.settings.session_secret", "rotated-secret"):
            assert verify_session_token(token) is None

    def test_empty_owner_cannot_be_issued(self) -> None:
        with pytest.raises(ValueError):
            issue_session_token("")

"""Unit tests for bearer extraction and the authentication gate."""

from __future__ import annotations

from datetime import timedelta

import pytest
from werkzeug.datastructures import Headers, MultiDict

from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from authcore.services.auth.dto import AuthStatus
from authcore.services.auth.gate import AuthenticationGate, extract_token


@pytest.mark.parametrize(
    ("headers", "args", "expected"),
    [
        ({"Authorization": "Bearer abc"}, {}, "abc"),
        ({"Authorization": "bearer   abc "}, {}, "abc"),
        ({"Authorization": "abc"}, {}, "abc"),
        ({"Authorization": "Bearer "}, {}, "Bearer"),
        ({}, {"token": "q"}, "q"),
        ({"Authorization": "Bearer h"}, {"token": "q"}, "h"),
        ({}, {}, None),
        ({}, {"token": "  "}, None),
    ],
)
def test_extract_token(headers, args, expected):
    assert extract_token(Headers(headers), MultiDict(args)) == expected


class TestAuthenticationGate:
    @pytest.fixture()
    def gate(self) -> AuthenticationGate:
        return AuthenticationGate(JWTTokenProvider())

    def test_absent_token_is_anonymous(self, gate):
        result = gate.authenticate(None)
        assert result.status is AuthStatus.ANONYMOUS
        assert result.is_authenticated is False
        assert result.user_id is None

    def test_valid_token_authenticates(self, gate):
        token = gate.tokens.issue(user_id=11, email="g@example.com", expires_delta=timedelta(minutes=5))
        result = gate.authenticate(token)

        assert result.status is AuthStatus.AUTHENTICATED
        assert result.is_authenticated is True
        assert result.user_id == 11
        assert result.email == "g@example.com"

    @pytest.mark.parametrize("bad", ["garbage", "a.b.c"])
    def test_bad_token_is_rejected(self, gate, bad):
        assert gate.authenticate(bad).status is AuthStatus.REJECTED

    def test_expired_token_is_rejected(self, gate):
        token = gate.tokens.issue(user_id=1, email="g@example.com", expires_delta=timedelta(seconds=-5))
        assert gate.authenticate(token).status is AuthStatus.REJECTED

    def test_authenticate_request_reads_query_param(self, gate):
        token = gate.tokens.issue(user_id=12, email="q@example.com", expires_delta=timedelta(minutes=5))
        result = gate.authenticate_request(Headers(), MultiDict({"token": token}))
        assert result.user_id == 12

    def test_bearer_without_value_is_rejected_not_anonymous(self, gate):
        result = gate.authenticate_request(Headers({"Authorization": "Bearer "}), MultiDict())
        assert result.status is AuthStatus.REJECTED

"""Unit tests for small HTTP wiring helpers."""

from __future__ import annotations

import pytest

from authcore.api import join_prefix
from authcore.core.cors import parse_origins


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("", ["*"]),
        (None, ["*"]),
        ("*", ["*"]),
        ("https://a.example, *", ["*"]),
        ("https://a.example, https://b.example ,", ["https://a.example", "https://b.example"]),
    ],
)
def test_parse_origins(raw, expected):
    assert parse_origins(raw) == expected


@pytest.mark.parametrize(
    ("segments", "expected"),
    [
        (("/api", "v1"), "/api/v1"),
        (("/api/", "/v1/"), "/api/v1"),
        (("", "v1"), "/v1"),
        (("/api", "v1", "/auth"), "/api/v1/auth"),
    ],
)
def test_join_prefix(segments, expected):
    assert join_prefix(*segments) == expected


def test_cors_preflight_exposes_request_id(client):
    resp = client.options(
        "/api/v1/auth/login",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["Access-Control-Allow-Origin"]

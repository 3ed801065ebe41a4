"""HTTP helper utilities for tests."""

from __future__ import annotations

from typing import Any

AUTH_PREFIX = "/api/v1/auth"


def json_headers(auth_token: str | None = None) -> dict[str, str]:
    """Return standard JSON headers.

    Parameters
    ----------
    auth_token:
        Optional bearer token to include.
    """

    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"
    return headers


def register(client, *, email: str, password: str = "Passw0rd!", name: str = "Ada") -> Any:
    """POST ``/auth/register`` and return the response."""

    return client.post(
        f"{AUTH_PREFIX}/register",
        json={"email": email, "name": name, "password": password},
    )


def session_tokens(resp) -> tuple[str, str]:
    """Extract ``(access_token, refresh_token)`` from a register/login response."""

    tokens = resp.get_json()["data"]["tokens"]
    return tokens["access_token"], tokens["refresh_token"]

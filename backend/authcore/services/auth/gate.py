# authcore/services/auth/gate.py
"""
Authentication gate: bearer credential -> identity.

The gate is a pure verifier. It never touches persistence and never mutates
state; it trusts the access token's signature and expiry.
"""

from __future__ import annotations

from collections.abc import Mapping

from authcore.services._shared.errors import TokenError
from authcore.services._shared.ports import TokenProvider
from authcore.services.auth.dto import AuthResult, AuthStatus

AUTH_HEADER = "Authorization"
QUERY_PARAM = "token"
BEARER_SCHEME = "bearer"


def extract_token(headers: Mapping[str, str], args: Mapping[str, str]) -> str | None:
    """
    Pull a bearer credential from an inbound request.

    The ``Authorization`` header takes precedence (``Bearer <token>`` or the
    raw token). The ``token`` query parameter, used by clients that cannot
    set headers such as WebSocket upgrades, is only consulted when no header
    is present.

    :param headers: Request headers (case-insensitive mapping).
    :param args: Query-string arguments.
    :returns: The token (possibly malformed), or ``None`` when no credential
        was presented.
    """
    header = (headers.get(AUTH_HEADER) or "").strip()
    if header:
        scheme, _, value = header.partition(" ")
        if scheme.lower() == BEARER_SCHEME:
            # "Bearer" with nothing after it is a malformed credential, not an
            # absent one.
            return value.strip() or header
        return header
    value = (args.get(QUERY_PARAM) or "").strip()
    return value or None


class AuthenticationGate:
    """
    Verify access tokens on behalf of protected endpoints.

    :param token_provider: Signer used to verify tokens.
    """

    def __init__(self, token_provider: TokenProvider) -> None:
        self.tokens = token_provider

    def authenticate(self, token: str | None) -> AuthResult:
        """
        Map a (possibly absent) token to an :class:`AuthResult`.

        An absent token is ``ANONYMOUS``; every verification failure is
        uniformly ``REJECTED``.
        """
        if not token:
            return AuthResult(status=AuthStatus.ANONYMOUS)
        try:
            claims = self.tokens.verify(token)
        except TokenError:
            return AuthResult(status=AuthStatus.REJECTED)
        return AuthResult(
            status=AuthStatus.AUTHENTICATED,
            user_id=claims.user_id,
            email=claims.email,
        )

    def authenticate_request(
        self, headers: Mapping[str, str], args: Mapping[str, str]
    ) -> AuthResult:
        return self.authenticate(extract_token(headers, args))

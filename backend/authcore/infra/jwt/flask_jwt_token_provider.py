# authcore/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

import jwt as pyjwt
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from authcore.services._shared.errors import InvalidSignatureError, TokenExpiredError
from authcore.services._shared.ports import AccessClaims, TokenProvider

ACCESS_TOKEN_TYPE = "access"
EMAIL_CLAIM = "email"


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended (PyJWT underneath).

    Tokens are HS256-signed with ``JWT_SECRET_KEY``. Verification only
    accepts the algorithms listed in ``JWT_DECODE_ALGORITHMS`` (``HS256``), so
    ``alg: none`` and algorithm-confusion tokens fail as bad signatures.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def issue(self, *, user_id: int, email: str, expires_delta: timedelta) -> str:
        # PyJWT requires "sub" to be a string.
        return cast(
            str,
            create_access_token(
                identity=str(user_id),
                additional_claims={EMAIL_CLAIM: email},
                expires_delta=expires_delta,
            ),
        )

    def verify(self, token: str) -> AccessClaims:
        try:
            payload = cast(dict[str, Any], decode_token(token))
        except pyjwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Access token expired") from exc
        except (pyjwt.PyJWTError, JWTExtendedException) as exc:
            raise InvalidSignatureError("Access token rejected") from exc

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidSignatureError("Unexpected token type")

        try:
            return AccessClaims(
                user_id=int(payload["sub"]),
                email=str(payload[EMAIL_CLAIM]),
                issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidSignatureError("Malformed token claims") from exc

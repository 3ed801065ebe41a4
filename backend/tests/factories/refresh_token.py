"""Factory Boy definition for :class:`authcore.models.refresh_token.RefreshToken`."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import factory

from authcore.models.refresh_token import RefreshToken
from authcore.services.auth.refresh_tokens import generate_token
from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class RefreshTokenFactory(BaseFactory):
    """Active refresh token owned by a fresh user unless ``user`` is given."""

    class Meta:
        model = RefreshToken

    id = None
    user = factory.SubFactory(UserFactory)
    token = factory.LazyFunction(generate_token)
    expires_at = factory.LazyFunction(lambda: datetime.now(UTC) + timedelta(days=30))
    revoked = False

    class Params:
        expired = factory.Trait(
            expires_at=factory.LazyFunction(lambda: datetime.now(UTC) - timedelta(minutes=1))
        )

"""Factory Boy definition for :class:`authcore.models.user.User`."""

from __future__ import annotations

import factory

from authcore.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from authcore.models.user import User
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"

_hasher = WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")


class UserFactory(BaseFactory):
    """
    Build persisted :class:`authcore.models.user.User` instances.

    Pass ``password="..."`` to hash a specific credential; the default is
    :data:`DEFAULT_PASSWORD`.
    """

    class Meta:
        model = User
        exclude = ("password",)

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    name = factory.Faker("name")
    password = DEFAULT_PASSWORD
    password_hash = factory.LazyAttribute(lambda o: _hasher.hash(o.password))

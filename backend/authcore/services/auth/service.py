# authcore/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta

from authcore.models.user import User
from authcore.services._shared.base import BaseService
from authcore.services._shared.errors import (
    InternalError,
    InvalidCredentialsError,
    InvalidTokenError,
    ServiceError,
    TokenError,
    UniqueConstraintViolation,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from authcore.services._shared.ports import EventPublisher, PasswordHasher, TokenProvider
from authcore.services.auth.dto import (
    AuthTokenConfig,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
    TokenPairOut,
    UserPublicOut,
    UserRegistered,
)
from authcore.services.auth.refresh_tokens import RefreshTokenStore

log = logging.getLogger(__name__)


class SessionService(BaseService):
    """
    Credential and session-token lifecycle (register / login / refresh / logout).

    The service owns the sequencing of user creation and token issuance.
    It never pre-checks uniqueness (the ``uq_users_email`` constraint is the
    single source of truth), never distinguishes an unknown email from a
    wrong password, and wraps every unexpected persistence or crypto failure
    into :class:`InternalError` before it crosses the service boundary.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        refresh_store: RefreshTokenStore,
        password_hasher: PasswordHasher,
        events: EventPublisher | None = None,
        token_cfg: AuthTokenConfig | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for signing/verifying access tokens.
        :param refresh_store: Opaque refresh-token issuance and rotation.
        :param password_hasher: One-way credential hasher.
        :param events: Optional post-commit event publisher.
        :param token_cfg: Access/Refresh expiry configuration.
        """
        self.tokens = token_provider
        self.refresh_store = refresh_store
        self.hasher = password_hasher
        self.events = events
        self.cfg = token_cfg or AuthTokenConfig(
            access_expires=timedelta(days=7),
            refresh_expires=refresh_store.ttl,
        )

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> SessionOut:
        """
        Create a user and log them in.

        :param dto: Registration input (already shape-validated).
        :returns: Fresh token pair and the created user.
        :raises UserAlreadyExistsError: If the email is taken, including when
            a concurrent registration won the race.
        :raises InternalError: On hashing, signing or persistence failure.
        """
        with self._internal_errors("auth.register"):
            password_hash = self.hasher.hash(dto.password)
            try:
                with self.rw_uow() as uow:
                    user = uow.users.create(
                        email=dto.email,
                        name=dto.name,
                        password_hash=password_hash,
                    )
                    public = self._to_user_public(user)
            except UniqueConstraintViolation as exc:
                log.info("auth.register_conflict", extra={"event": "auth.register_conflict"})
                raise UserAlreadyExistsError() from exc

            try:
                tokens = self._issue_pair(public.id, public.email)
            except Exception:
                self._discard_user(public.id)
                raise

        log.info("auth.register", extra={"user_id": public.id, "event": "auth.register"})
        self._publish(
            UserRegistered(
                user_id=public.id,
                email=public.email,
                name=public.name,
                occurred_at=self.now_utc(),
            )
        )
        return SessionOut(tokens=tokens, user=public)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :returns: Access/Refresh token pair and the user.
        :raises InvalidCredentialsError: Unknown email or wrong password
            (indistinguishable by key, message and status).
        """
        with self._internal_errors("auth.login"):
            with self.ro_uow() as uow:
                user = uow.users.get_by_email(dto.email)
                password_hash = user.password_hash if user is not None else None
                public = self._to_user_public(user) if user is not None else None

            if public is None or password_hash is None:
                self.hasher.dummy_verify(dto.password)
                log.warning("auth.login_failed", extra={"event": "auth.login_failed"})
                raise InvalidCredentialsError()

            if not self.hasher.verify(dto.password, password_hash):
                log.warning(
                    "auth.login_failed",
                    extra={"user_id": public.id, "event": "auth.login_failed"},
                )
                raise InvalidCredentialsError()

            tokens = self._issue_pair(public.id, public.email)

        log.info("auth.login", extra={"user_id": public.id, "event": "auth.login"})
        return SessionOut(tokens=tokens, user=public)

    # ------------------------------------------------------------------ #
    # Refresh with single-use rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        The presented token is permanently revoked, including for a
        legitimate retry: callers must keep the refresh token from the
        response.

        :raises InvalidTokenError: Unknown, expired, revoked or already
            rotated token.
        :raises UserNotFoundError: The owner was deleted after issuance.
        """
        with self._internal_errors("auth.refresh"):
            try:
                rotated = self.refresh_store.rotate(dto.refresh_token)
            except InvalidTokenError:
                log.warning("auth.refresh_rejected", extra={"event": "auth.refresh_rejected"})
                raise

            # Always re-read: email may have changed since the token was minted.
            with self.ro_uow() as uow:
                user = uow.users.get(rotated.user_id)
                email = user.email if user is not None else None

            if email is None:
                self.refresh_store.revoke(rotated.token)
                log.warning(
                    "auth.refresh_orphaned",
                    extra={"user_id": rotated.user_id, "event": "auth.refresh_orphaned"},
                )
                raise UserNotFoundError()

            access = self.tokens.issue(
                user_id=rotated.user_id,
                email=email,
                expires_delta=self.cfg.access_expires,
            )

        log.info("auth.refresh", extra={"user_id": rotated.user_id, "event": "auth.refresh"})
        return TokenPairOut(access_token=access, refresh_token=rotated.token)

    # ------------------------------------------------------------------ #
    # Introspect
    # ------------------------------------------------------------------ #

    def introspect(self, access_token: str) -> int:
        """
        Verify an access token and return its user id.

        :raises InvalidTokenError: Bad signature, wrong algorithm, expired or
            malformed token.
        """
        try:
            claims = self.tokens.verify(access_token)
        except TokenError as exc:
            raise InvalidTokenError() from exc
        return claims.user_id

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke the presented refresh token, optionally with every sibling.

        Idempotent: unknown or already-revoked tokens are not an error.
        """
        with self._internal_errors("auth.logout"):
            owner = self.refresh_store.owner_of(dto.refresh_token)
            self.refresh_store.revoke(dto.refresh_token)
            if dto.all_sessions and owner is not None:
                count = self.refresh_store.revoke_all(owner)
                log.info(
                    "auth.logout_all revoked=%s",
                    count,
                    extra={"user_id": owner, "event": "auth.logout_all"},
                )
            elif owner is not None:
                log.info("auth.logout", extra={"user_id": owner, "event": "auth.logout"})

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_user(self, user_id: int) -> UserPublicOut:
        """
        Return the public profile of ``user_id``.

        :raises UserNotFoundError: If the user no longer exists.
        """
        with self._internal_errors("auth.get_user"):
            with self.ro_uow() as uow:
                user = uow.users.get(user_id)
                if user is None:
                    raise UserNotFoundError()
                return self._to_user_public(user)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _issue_pair(self, user_id: int, email: str) -> TokenPairOut:
        access = self.tokens.issue(
            user_id=user_id,
            email=email,
            expires_delta=self.cfg.access_expires,
        )
        refresh = self.refresh_store.issue(user_id)
        return TokenPairOut(access_token=access, refresh_token=refresh.token)

    def _discard_user(self, user_id: int) -> None:
        """Undo a registration whose tokens could not be issued.

        Keeps "register succeeded" equivalent to "user and refresh token both
        exist", so the email stays available for a retry.
        """
        try:
            with self.rw_uow() as uow:
                uow.users.delete(user_id)
        except Exception:
            log.exception(
                "auth.register_cleanup_failed",
                extra={"user_id": user_id, "event": "auth.register_cleanup_failed"},
            )
            raise
        log.warning(
            "auth.register_rolled_back",
            extra={"user_id": user_id, "event": "auth.register_rolled_back"},
        )

    def _publish(self, event: UserRegistered) -> None:
        """Hand the event to the publisher; a failure here never fails the caller."""
        if self.events is None:
            return
        try:
            self.events.publish(event)
        except Exception:
            log.exception(
                "events.publish_failed",
                extra={"user_id": event.user_id, "event": "events.publish_failed"},
            )

    @contextmanager
    def _internal_errors(self, operation: str) -> Iterator[None]:
        """Let domain errors through; log and wrap anything else as internal."""
        try:
            yield
        except ServiceError:
            raise
        except Exception as exc:
            log.error(
                "%s.failed",
                operation,
                exc_info=True,
                extra={"event": f"{operation}.failed"},
            )
            raise InternalError() from exc

    @staticmethod
    def _to_user_public(user: User) -> UserPublicOut:
        """
        Map ORM ``User`` to :class:`UserPublicOut`.

        :param user: ORM user instance.
        :type user: :class:`authcore.models.user.User`
        :returns: Public-safe DTO.
        :rtype: :class:`UserPublicOut`
        """
        return UserPublicOut(
            id=user.id,
            email=user.email,
            name=user.name,
            created_at=user.created_at,
        )

# session_auth/services/auth/service.py
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from session_auth.core.clock import Clock, utcnow
from session_auth.core.config import AuthSettings
from session_auth.models import Role, RoleName, User
from session_auth.services._shared.base import BaseService, ServiceContext
from session_auth.services._shared.errors import (
    ConfigurationError,
    DuplicateIdentity,
    InvalidCredentials,
    InvalidToken,
    TokenInactive,
    violates,
)
from session_auth.services._shared.ports import (
    AccessClaims,
    PasswordHasher,
    RandomTokenGenerator,
    RoleStore,
    TokenSigner,
)
from session_auth.services.auth.dto import (
    LoginIn,
    LoginOut,
    RefreshIn,
    RegistrationIn,
    RevokeIn,
    TokenPairOut,
    UserPublicOut,
)
from session_auth.services.auth.refresh_tokens import RefreshTokenManager
from session_auth.uow.base import UnitOfWork

logger = logging.getLogger(__name__)

# Constraint name → offending field, for unique violations raised at commit.
_UNIQUE_FIELDS: tuple[tuple[str, tuple[str, ...], str], ...] = (
    ("uq_users_email", ("users.email",), "email"),
    ("uq_users_username", ("users.username",), "username"),
)


class AuthenticationService(BaseService):
    """
    Authentication lifecycle service (login / register / refresh / revoke).

    Credentials are verified with a :class:`PasswordHasher`, access tokens are
    issued by a :class:`TokenSigner`, and refresh tokens go through the
    :class:`RefreshTokenManager` state machine on the current unit of work.

    Every expected failure is raised as a :class:`ServiceError` carrying an
    :class:`ErrorKind`; storage faults surface as a retryable
    :class:`PersistenceFailure` without their internal detail.
    """

    def __init__(
        self,
        *,
        hasher: PasswordHasher,
        signer: TokenSigner,
        generator: RandomTokenGenerator,
        settings: AuthSettings,
        ctx: ServiceContext | None = None,
        clock: Clock = utcnow,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param hasher: Password hashing port.
        :param signer: Access-token signing port.
        :param generator: Refresh-token string generator.
        :param settings: Frozen auth settings (lifetimes, retention, reuse policy).
        :param ctx: Request-scoped context (actor, request id, deadline).
        :param clock: Source of the current UTC time.
        """
        super().__init__(ctx=ctx, clock=clock)
        self.hasher = hasher
        self.signer = signer
        self.generator = generator
        self.settings = settings

    def _manager(self, uow: UnitOfWork) -> RefreshTokenManager:
        return RefreshTokenManager(
            uow.refresh_tokens,
            self.generator,
            lifetime=self.settings.refresh_expires,
            clock=self.clock,
        )

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn, ip: str) -> LoginOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown email and wrong password raise the same error after spending
        comparable hashing time.

        :param dto: Login input.
        :param ip: Client address recorded on the refresh token.
        :returns: Tokens, their expiries and the public user projection.
        :raises InvalidCredentials: If the email/password pair does not match.
        """
        with self.storage_errors("login"):
            with self.ro_uow() as uow:
                user = uow.users.get_by_email(dto.email)
                if user is None:
                    self.hasher.dummy_verify(dto.password)
                    logger.warning("auth.login.failed", extra=self.log_extra())
                    raise InvalidCredentials()
                if not self.hasher.verify(dto.password, user.password_hash):
                    logger.warning("auth.login.failed", extra=self.log_extra(user_id=user.id))
                    raise InvalidCredentials()
                profile = UserPublicOut.from_model(user)
            self.checkpoint("login.verify")

            access = self.signer.issue(self._claims(profile), self.settings.access_expires)

            with self.rw_uow() as uow:
                refresh = self._manager(uow).create(profile.id, ip)
                refresh_id, refresh_token = refresh.id, refresh.token
                refresh_expires_at = refresh.expires_at
                self.checkpoint("login.commit")

        logger.info(
            "auth.login.succeeded", extra=self.log_extra(user_id=profile.id, token_id=refresh_id)
        )
        self._cleanup(profile.id)
        return LoginOut(
            access_token=access.token,
            access_token_expires_at=access.expires_at,
            refresh_token=refresh_token,
            refresh_token_expires_at=refresh_expires_at,
            user=profile,
        )

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register(
        self, dto: RegistrationIn, role_name: str | RoleName = RoleName.USER
    ) -> UserPublicOut:
        """
        Create a user with a hashed password and the requested role.

        Email and username are checked independently so the error names the
        colliding field. An unknown role falls back to ``User``.

        :param dto: Registration input.
        :param role_name: Requested role name (case-insensitive).
        :returns: Public projection of the new user.
        :raises DuplicateIdentity: When the email or username is taken.
        :raises ConfigurationError: When even the ``User`` role is missing.
        """
        with self.storage_errors("register"):
            with self.ro_uow() as uow:
                if uow.users.exists_by_email(dto.email):
                    raise DuplicateIdentity("email")
                if uow.users.exists_by_username(dto.username):
                    raise DuplicateIdentity("username")
                resolved = self._resolve_role(uow.roles, role_name).name

            digest = self.hasher.hash(dto.password)
            self.checkpoint("register.hash")

            try:
                with self.rw_uow() as uow:
                    role = self._resolve_role(uow.roles, resolved)
                    user = uow.users.add(
                        User(
                            username=dto.username,
                            email=dto.email,
                            password_hash=digest,
                            role=role,
                        )
                    )
                    out = UserPublicOut.from_model(user)
                    self.checkpoint("register.commit")
            except IntegrityError as exc:
                # Lost a race with a concurrent registration.
                for constraint, columns, field in _UNIQUE_FIELDS:
                    if violates(exc, constraint, columns=columns):
                        raise DuplicateIdentity(field) from exc
                raise

        logger.info("auth.register.succeeded", extra=self.log_extra(user_id=out.id))
        return out

    def _resolve_role(self, roles: RoleStore, role_name: str | RoleName) -> Role:
        wanted = RoleName.parse(role_name) or RoleName.USER
        role = roles.get_by_name(wanted)
        if role is None and wanted is not RoleName.USER:
            role = roles.get_by_name(RoleName.USER)
        if role is None:
            raise ConfigurationError("Default role 'User' is not seeded.")
        return role

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn, ip: str) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - Revocation of the old token and creation of its successor commit
          together; a concurrent rotation of the same token loses.
        - Presenting a token that was already rotated revokes the rest of its
          lineage (when ``reuse_detection`` is on) before failing.

        :raises InvalidToken: When the token does not exist.
        :raises TokenInactive: When the token is revoked or expired.
        """
        replayed_by: int | None = None
        with self.storage_errors("refresh"):
            try:
                with self.rw_uow() as uow:
                    current = uow.refresh_tokens.get_by_token(dto.refresh_token)
                    if current is None:
                        raise InvalidToken()
                    if not current.is_active(self.now_utc()):
                        if current.was_rotated and self.settings.reuse_detection:
                            replayed_by = current.user_id
                        raise TokenInactive()

                    user = current.user
                    access = self.signer.issue(
                        self._claims(UserPublicOut.from_model(user)),
                        self.settings.access_expires,
                    )
                    _, successor = self._manager(uow).rotate(dto.refresh_token, ip)
                    user_id, successor_id = user.id, successor.id
                    pair = TokenPairOut(
                        access_token=access.token,
                        access_token_expires_at=access.expires_at,
                        refresh_token=successor.token,
                        refresh_token_expires_at=successor.expires_at,
                    )
                    self.checkpoint("refresh.commit")
            except TokenInactive:
                if replayed_by is not None:
                    self._revoke_lineage(dto.refresh_token, ip, replayed_by)
                raise

        logger.info(
            "auth.refresh.rotated",
            extra=self.log_extra(user_id=user_id, token_id=successor_id),
        )
        self._cleanup(user_id)
        return pair

    def _revoke_lineage(self, token: str, ip: str, user_id: int) -> None:
        with self.rw_uow() as uow:
            revoked = self._manager(uow).revoke_lineage(token, ip)
        logger.warning(
            "auth.refresh.reuse_detected",
            extra=self.log_extra(user_id=user_id, removed=revoked),
        )

    # ------------------------------------------------------------------ #
    # Revoke
    # ------------------------------------------------------------------ #

    def revoke(self, dto: RevokeIn, ip: str) -> bool:
        """
        Revoke a refresh token.

        :returns: ``False`` when the token is unknown or already inactive;
            ``True`` when this call revoked it.
        """
        with self.storage_errors("revoke"):
            with self.rw_uow() as uow:
                current = uow.refresh_tokens.get_by_token(dto.refresh_token)
                if current is None:
                    return False
                token_id, user_id = current.id, current.user_id
                revoked = self._manager(uow).revoke(dto.refresh_token, ip)
                self.checkpoint("revoke.commit")

        if revoked:
            logger.info("auth.revoke", extra=self.log_extra(user_id=user_id, token_id=token_id))
        return revoked

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _cleanup(self, user_id: int) -> int:
        """
        Sweep the user's stale tokens in a separate unit of work.

        Runs after the triggering operation committed; a failure here is
        logged and never turns that operation into an error.
        """
        try:
            with self.rw_uow() as uow:
                removed = self._manager(uow).cleanup(user_id, self.settings.retention_days)
        except Exception:
            logger.warning(
                "auth.cleanup.failed", exc_info=True, extra=self.log_extra(user_id=user_id)
            )
            return 0
        if removed:
            logger.info(
                "auth.cleanup.removed", extra=self.log_extra(user_id=user_id, removed=removed)
            )
        return removed

    @staticmethod
    def _claims(user: UserPublicOut) -> AccessClaims:
        return AccessClaims(
            user_id=user.id, email=user.email, username=user.username, role=user.role
        )

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from smartcane.auth.errors import (
    AuthError,
    IdentityServiceError,
    IncompleteSuccess,
    RemoteError,
    ValidationError,
)
from smartcane.auth.identity import IdentityService
from smartcane.auth.models import Credentials, Identity, SessionState, SignedIn, SignedOut
from smartcane.storage.aliases import AliasStore

logger = logging.getLogger(__name__)

DISPLAY_NAME_ATTRIBUTE = "display_name"

MSG_EMAIL_REQUIRED = "Email is required to sign up."
MSG_PASSWORD_REQUIRED = "Password is required."
MSG_NO_IDENTITY = "Enter a username or email to sign in."
MSG_CONFIRMATION_PENDING = "Check your email inbox to confirm the account before signing in."
MSG_NO_SESSION = "Unable to start session. Please verify your credentials."


def resolve_login_email(credentials: Credentials, aliases: AliasStore) -> Optional[str]:
    """
    Pick the e-mail to authenticate with, in order:

    1. a username that is itself an e-mail (lower-cased)
    2. the remembered e-mail for a non-empty username
    3. the e-mail field (lower-cased)
    """
    username = credentials.username
    if "@" in username:
        return username.lower()
    if username:
        stored = aliases.email_for(username)
        if stored:
            return stored
    if credentials.email:
        return credentials.email.lower()
    return None


class SessionController:
    """
    Owns the signed-in / signed-out state of one app instance.

    The `email`, `username` and `password` attributes mirror the login form;
    operation arguments left as None fall back to them. Operations never raise
    for expected failures: the outcome is recorded in `last_error` and
    `error_message`. An asyncio.Lock serializes operations, so overlapping
    calls run one after another in arrival order.
    """

    def __init__(self, identity: IdentityService, aliases: AliasStore) -> None:
        self._identity = identity
        self._aliases = aliases
        self._lock = asyncio.Lock()

        self.state: SessionState = SignedOut()
        self.email = ""
        self.username = ""
        self.password = ""
        self.last_error: Optional[AuthError] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_signed_in

    @property
    def identity(self) -> Optional[Identity]:
        return self.state.identity if isinstance(self.state, SignedIn) else None

    @property
    def error_message(self) -> Optional[str]:
        return self.last_error.message if self.last_error is not None else None

    def _credentials(self, email: Optional[str], username: Optional[str], password: Optional[str]) -> Credentials:
        return Credentials(
            email=self.email if email is None else email,
            username=self.username if username is None else username,
            password=self.password if password is None else password,
        ).trimmed()

    def _reject(self, error: ValidationError) -> SessionState:
        # Input problems never change the session.
        self.last_error = error
        return self.state

    def _fail(self, error: AuthError) -> SessionState:
        self.last_error = error
        self.state = SignedOut()
        return self.state

    def _enter(self, identity: Identity, email: str, username: str) -> SessionState:
        self.state = SignedIn(identity)
        self.last_error = None
        # The entered values become the form fields of the new session.
        self.email = identity.email or email
        self.username = username
        return self.state

    async def sign_up(
        self, email: Optional[str] = None, username: Optional[str] = None, password: Optional[str] = None
    ) -> SessionState:
        async with self._lock:
            self.last_error = None
            creds = self._credentials(email, username, password)
            if not creds.email:
                return self._reject(ValidationError(MSG_EMAIL_REQUIRED))
            if not creds.password:
                return self._reject(ValidationError(MSG_PASSWORD_REQUIRED))

            try:
                created = await self._identity.create_account(creds.email, creds.password)
            except IdentityServiceError as e:
                logger.info("Sign-up rejected for %s: %s", creds.email, e.message)
                return self._fail(RemoteError(e.message))

            if not created.session_present:
                logger.info("Sign-up for %s awaits e-mail confirmation", creds.email)
                return self._fail(IncompleteSuccess(MSG_CONFIRMATION_PENDING))

            if creds.username:
                try:
                    await self._identity.update_profile_attribute(DISPLAY_NAME_ATTRIBUTE, creds.username)
                except IdentityServiceError as e:
                    logger.warning("Could not set display name for %s: %s", creds.email, e.message)

            self._aliases.remember(creds.username, creds.email)
            self._aliases.remember_username(creds.username)
            identity = created.identity or Identity(email=creds.email, display_name=creds.username or None)
            logger.info("Signed up and signed in as %s", identity.email)
            return self._enter(identity, creds.email, creds.username)

    async def sign_in(
        self, email: Optional[str] = None, username: Optional[str] = None, password: Optional[str] = None
    ) -> SessionState:
        async with self._lock:
            self.last_error = None
            creds = self._credentials(email, username, password)
            if not creds.password:
                return self._reject(ValidationError(MSG_PASSWORD_REQUIRED))

            resolved = resolve_login_email(creds, self._aliases)
            if resolved is None:
                return self._reject(ValidationError(MSG_NO_IDENTITY))

            try:
                identity = await self._identity.authenticate(resolved, creds.password)
            except IdentityServiceError as e:
                logger.info("Sign-in rejected for %s: %s", resolved, e.message)
                return self._fail(RemoteError(e.message))

            if identity is None:
                return self._fail(IncompleteSuccess(MSG_NO_SESSION))

            self._aliases.remember(creds.username, resolved)
            self._aliases.remember_username(creds.username)
            logger.info("Signed in as %s", identity.email or resolved)
            return self._enter(identity, resolved, creds.username)

    async def sign_out(self) -> SessionState:
        async with self._lock:
            active_username = self.username.strip()
            failure: Optional[IdentityServiceError] = None
            try:
                await self._identity.invalidate_session()
            except IdentityServiceError as e:
                # Local state is cleared anyway so the user is never stuck signed in.
                logger.warning("Remote sign-out failed: %s", e.message)
                failure = e

            self.email = ""
            self.username = ""
            self.password = ""
            self.last_error = None
            self._aliases.forget(active_username)
            self._aliases.forget_username()
            self.state = SignedOut()

            if failure is not None:
                self.last_error = RemoteError(failure.message)
            else:
                logger.info("Signed out")
            return self.state

    async def restore_session(self) -> SessionState:
        async with self._lock:
            try:
                identity = await self._identity.current_session()
            except IdentityServiceError as e:
                logger.warning("Failed to restore session: %s", e.message)
                identity = None

            if identity is None:
                self.state = SignedOut()
                return self.state

            self.state = SignedIn(identity)
            self.username = self._aliases.remembered_username()
            self.email = identity.email or ""
            logger.info("Session restored for %s", self.email)
            return self.state

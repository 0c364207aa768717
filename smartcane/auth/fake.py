from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from smartcane.auth.errors import IdentityServiceError
from smartcane.auth.models import AccountCreation, Identity


@dataclass
class _Account:
    email: str
    password: str
    metadata: Dict[str, str] = field(default_factory=dict)
    confirmed: bool = True


class FakeIdentityService:
    """
    In-memory IdentityService for tests and offline runs.

    - `require_confirmation=True` makes new accounts unconfirmed (no session on sign-up).
    - `fail_next(op, message)` makes the next call to `op` raise IdentityServiceError.
    - `calls` records (operation, email) in call order; passwords are not recorded.
    """

    def __init__(self, *, require_confirmation: bool = False) -> None:
        self.require_confirmation = require_confirmation
        self.accounts: Dict[str, _Account] = {}
        self.session_email: Optional[str] = None
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.sessionless_sign_in = False
        self._failures: Dict[str, str] = {}

    def add_account(self, email: str, password: str, *, confirmed: bool = True) -> None:
        self.accounts[email] = _Account(email=email, password=password, confirmed=confirmed)

    def fail_next(self, op: str, message: str) -> None:
        self._failures[op] = message

    def _maybe_fail(self, op: str) -> None:
        message = self._failures.pop(op, None)
        if message is not None:
            raise IdentityServiceError(message)

    def _identity(self, account: _Account) -> Identity:
        return Identity(email=account.email, display_name=account.metadata.get("display_name") or None)

    async def create_account(self, email: str, password: str) -> AccountCreation:
        self.calls.append(("create_account", email))
        self._maybe_fail("create_account")
        if email in self.accounts:
            raise IdentityServiceError("User already registered")
        account = _Account(email=email, password=password, confirmed=not self.require_confirmation)
        self.accounts[email] = account
        if not account.confirmed:
            return AccountCreation(identity=self._identity(account), session_present=False)
        self.session_email = email
        return AccountCreation(identity=self._identity(account), session_present=True)

    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        self.calls.append(("authenticate", email))
        self._maybe_fail("authenticate")
        account = self.accounts.get(email)
        if account is None or account.password != password:
            raise IdentityServiceError("Invalid login credentials")
        if not account.confirmed:
            raise IdentityServiceError("Email not confirmed")
        if self.sessionless_sign_in:
            return None
        self.session_email = email
        return self._identity(account)

    async def invalidate_session(self) -> None:
        self.calls.append(("invalidate_session", self.session_email))
        self._maybe_fail("invalidate_session")
        self.session_email = None

    async def current_session(self) -> Optional[Identity]:
        self.calls.append(("current_session", self.session_email))
        self._maybe_fail("current_session")
        if self.session_email is None:
            return None
        return self._identity(self.accounts[self.session_email])

    async def update_profile_attribute(self, key: str, value: str) -> None:
        self.calls.append(("update_profile_attribute", self.session_email))
        self._maybe_fail("update_profile_attribute")
        if self.session_email is None:
            # Unconfirmed sign-ups have no session to update.
            raise IdentityServiceError("Auth session missing!")
        self.accounts[self.session_email].metadata[key] = value

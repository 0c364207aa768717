from __future__ import annotations

from typing import Optional, Protocol

from smartcane.auth.models import AccountCreation, Identity


class IdentityService(Protocol):
    """
    Remote identity service used by the session controller.

    Implementations raise `IdentityServiceError` on any failure; its message is
    surfaced to the user verbatim.
    """

    async def create_account(self, email: str, password: str) -> AccountCreation:
        """
        Register a new account.

        Returns:
            AccountCreation with `session_present=False` when the account must be
            confirmed by e-mail before it can sign in.
        """
        ...

    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        """
        Sign in with e-mail and password.

        Returns:
            The signed-in identity, or None if the service accepted the call but
            did not start a session.
        """
        ...

    async def invalidate_session(self) -> None:
        """Sign out and drop the persisted session."""
        ...

    async def current_session(self) -> Optional[Identity]:
        """Return the identity of a persisted, still-valid session, if any."""
        ...

    async def update_profile_attribute(self, key: str, value: str) -> None:
        """Set a metadata attribute on the signed-in account."""
        ...

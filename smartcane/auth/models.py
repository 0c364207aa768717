from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Union


@dataclass(frozen=True)
class Identity:
    """Authenticated account as reported by the identity service."""

    email: str
    display_name: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class Credentials:
    """Values typed into the login form. Never persisted."""

    email: str = ""
    username: str = ""
    password: str = field(default="", repr=False)

    def trimmed(self) -> "Credentials":
        return replace(
            self,
            email=(self.email or "").strip(),
            username=(self.username or "").strip(),
            password=(self.password or "").strip(),
        )


@dataclass(frozen=True)
class SignedOut:
    @property
    def is_signed_in(self) -> bool:
        return False


@dataclass(frozen=True)
class SignedIn:
    identity: Identity

    @property
    def is_signed_in(self) -> bool:
        return True


SessionState = Union[SignedOut, SignedIn]


@dataclass(frozen=True)
class AccountCreation:
    """Result of creating an account.

    `session_present` is False when the backend requires e-mail confirmation
    before the first sign-in.
    """

    identity: Optional[Identity]
    session_present: bool

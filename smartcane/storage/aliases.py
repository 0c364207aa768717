from __future__ import annotations

from typing import Optional

from smartcane.storage.kv import KeyValueStore

ALIAS_KEY_PREFIX = "email_for_login_"
USERNAME_KEY = "username"


def alias_key(username: str) -> str:
    return f"{ALIAS_KEY_PREFIX}{username}"


class AliasStore:
    """
    Username -> e-mail hints so a returning user can sign in with a username.

    A cache only: the identity service decides whether the account exists.
    Empty usernames are ignored everywhere.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def email_for(self, username: str) -> Optional[str]:
        if not username:
            return None
        return self._store.get(alias_key(username)) or None

    def remember(self, username: str, email: str) -> None:
        if not username or not email:
            return
        self._store.set(alias_key(username), email)

    def forget(self, username: str) -> None:
        if not username:
            return
        self._store.remove(alias_key(username))

    def remembered_username(self) -> str:
        return self._store.get(USERNAME_KEY) or ""

    def remember_username(self, username: str) -> None:
        if not username:
            return
        self._store.set(USERNAME_KEY, username)

    def forget_username(self) -> None:
        self._store.remove(USERNAME_KEY)

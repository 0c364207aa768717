"""
Supabase-backed identity service.

supabase-py is synchronous; each call runs in a worker thread so the session
controller can await it. The SDK persists its session through
`KeyValueSessionStorage`, which writes into the app's key-value store, so a
later process can restore the session.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, TypeVar

from supabase.client import Client, ClientOptions, create_client
from supabase_auth import SyncSupportedStorage
from supabase_auth.errors import AuthError

from smartcane.auth.config import IdentityConfig
from smartcane.auth.errors import IdentityServiceError
from smartcane.auth.models import AccountCreation, Identity
from smartcane.storage.kv import KeyValueStore

T = TypeVar("T")


class KeyValueSessionStorage(SyncSupportedStorage):
    """Adapter from the SDK's session storage hook to a KeyValueStore."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get_item(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._store.set(key, value)

    def remove_item(self, key: str) -> None:
        self._store.remove(key)


def identity_from_user(user: Any) -> Optional[Identity]:
    """Map a supabase `User` to an Identity (None if there is no usable user)."""
    if user is None:
        return None
    email = getattr(user, "email", None) or ""
    metadata = getattr(user, "user_metadata", None) or {}
    display_name = metadata.get("display_name") if isinstance(metadata, dict) else None
    user_id = getattr(user, "id", None)
    return Identity(
        email=str(email),
        display_name=str(display_name) if display_name else None,
        user_id=str(user_id) if user_id else None,
    )


def create_supabase_client(cfg: IdentityConfig, store: KeyValueStore) -> Client:
    if not cfg.remote_enabled:
        raise IdentityServiceError("Supabase is not configured. Set SUPABASE_URL and SUPABASE_KEY.")
    options = ClientOptions(
        auto_refresh_token=cfg.auto_refresh_token,
        persist_session=True,
        storage=KeyValueSessionStorage(store),
    )
    return create_client(cfg.supabase_url, cfg.supabase_key, options=options)


class SupabaseIdentityService:
    """IdentityService over Supabase Auth."""

    def __init__(self, client: Client) -> None:
        self._client = client

    async def _call(self, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(fn)
        except AuthError as e:
            raise IdentityServiceError(e.message or str(e)) from e
        except IdentityServiceError:
            raise
        except Exception as e:  # noqa: BLE001
            # Transport errors (httpx) and anything else the SDK lets through.
            raise IdentityServiceError(str(e) or type(e).__name__) from e

    async def create_account(self, email: str, password: str) -> AccountCreation:
        resp = await self._call(lambda: self._client.auth.sign_up({"email": email, "password": password}))
        return AccountCreation(
            identity=identity_from_user(getattr(resp, "user", None)),
            session_present=getattr(resp, "session", None) is not None,
        )

    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        resp = await self._call(
            lambda: self._client.auth.sign_in_with_password({"email": email, "password": password})
        )
        if getattr(resp, "session", None) is None:
            return None
        return identity_from_user(getattr(resp, "user", None))

    async def invalidate_session(self) -> None:
        await self._call(self._client.auth.sign_out)

    async def current_session(self) -> Optional[Identity]:
        session = await self._call(self._client.auth.get_session)
        if session is None:
            return None
        return identity_from_user(getattr(session, "user", None))

    async def update_profile_attribute(self, key: str, value: str) -> None:
        await self._call(lambda: self._client.auth.update_user({"data": {key: value}}))

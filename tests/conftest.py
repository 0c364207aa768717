"""
Pytest config.

Local imports like `import smartcane` rely on the repo root being on sys.path.
When invoking a global `pytest` entrypoint without installing the project that
doesn't happen reliably during collection, so we pin it here.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture(autouse=True)
def _isolated_identity_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """
    Keep tests away from a developer's real Supabase project and ~/.smartcane.

    Individual tests can set SUPABASE_URL / SUPABASE_KEY themselves; the config
    cache is cleared before and after each test.
    """
    from smartcane.auth.config import load_identity_config

    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    monkeypatch.delenv("SMARTCANE_AUTO_REFRESH_TOKEN", raising=False)
    monkeypatch.setenv("SMARTCANE_DATA_DIR", str(tmp_path / "smartcane"))
    load_identity_config.cache_clear()
    yield
    load_identity_config.cache_clear()


@pytest.fixture
def kv():
    from smartcane.storage.kv import MemoryKeyValueStore

    return MemoryKeyValueStore()


@pytest.fixture
def aliases(kv):
    from smartcane.storage.aliases import AliasStore

    return AliasStore(kv)


@pytest.fixture
def identity_service():
    from smartcane.auth.fake import FakeIdentityService

    return FakeIdentityService()


@pytest.fixture
def controller(identity_service, aliases):
    from smartcane.auth.controller import SessionController

    return SessionController(identity_service, aliases)

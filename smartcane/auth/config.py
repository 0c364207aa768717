from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

DEFAULT_DATA_DIR = "~/.smartcane"
STORE_FILENAME = "store.json"


@dataclass(frozen=True)
class IdentityConfig:
    # Supabase project (anon key; never the service-role key)
    supabase_url: Optional[str]
    supabase_key: Optional[str]

    # Local persistence
    data_dir: Path

    # Background token refresh keeps a timer thread alive; off for short-lived CLI runs.
    auto_refresh_token: bool

    @property
    def remote_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def store_path(self) -> Path:
        return self.data_dir / STORE_FILENAME


def _parse_bool(value: str, default: bool) -> bool:
    v = (value or "").strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    return default


@lru_cache(maxsize=1)
def load_identity_config() -> IdentityConfig:
    """
    Load identity backend configuration from environment variables.

    The remote backend is enabled only if SUPABASE_URL and SUPABASE_KEY are both set.
    """
    data_dir = (os.getenv("SMARTCANE_DATA_DIR", "") or "").strip() or DEFAULT_DATA_DIR

    return IdentityConfig(
        supabase_url=(os.getenv("SUPABASE_URL", "") or "").strip() or None,
        supabase_key=(os.getenv("SUPABASE_KEY", "") or "").strip() or None,
        data_dir=Path(data_dir).expanduser(),
        auto_refresh_token=_parse_bool(os.getenv("SMARTCANE_AUTO_REFRESH_TOKEN", ""), False),
    )

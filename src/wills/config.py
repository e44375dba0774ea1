from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from state.store import InMemoryStore, KeyValueStore


ENV_STORE_BACKEND = "WILL_STORE_BACKEND"
BACKENDS = ("memory", "http", "s3")


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.environ.get(name)
    return v if v not in (None, "") else default


@dataclass
class StoreConfig:
    backend: str = "memory"

    @classmethod
    def from_env(cls) -> "StoreConfig":
        backend = (_getenv(ENV_STORE_BACKEND, "memory") or "memory").strip().lower()
        if backend not in BACKENDS:
            raise RuntimeError(
                f"Unsupported {ENV_STORE_BACKEND}={backend!r}; expected one of {', '.join(BACKENDS)}"
            )
        return cls(backend=backend)


def build_store(config: Optional[StoreConfig] = None) -> KeyValueStore:
    """Instantiate the configured store; adapters read their own env settings."""
    config = config or StoreConfig.from_env()
    if config.backend == "http":
        from state.http_store import HttpLedgerStore

        return HttpLedgerStore.from_env()
    if config.backend == "s3":
        from state.s3_store import S3KeyValueStore

        return S3KeyValueStore.from_env()
    return InMemoryStore()

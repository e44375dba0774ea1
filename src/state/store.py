from __future__ import annotations

from typing import Dict, Optional, Protocol, runtime_checkable


INDEX_KEY = "will_keys"
RECORD_KEY_PREFIX = "will_"


def record_key(will_id: str) -> str:
    return f"{RECORD_KEY_PREFIX}{will_id}"


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Minimal surface of the external store backing the registry.

    - `is_available()` must be probed before reads.
    - `get_data(key)` returns b"" for an absent key and never raises for absence.
    - `set_data(key, value)` raises `TransportError` (or a subclass) when the
      write is rejected or the transport fails.

    There are no transactions, no enumeration and no compare-and-swap.
    """

    async def is_available(self) -> bool: ...

    async def get_data(self, key: str) -> bytes: ...

    async def set_data(self, key: str, value: bytes) -> None: ...


class InMemoryStore:
    """
    Process-local `KeyValueStore` for local runs and the `memory` backend.

    `available` toggles the availability probe.
    """

    def __init__(self, initial: Optional[Dict[str, bytes]] = None, *, available: bool = True) -> None:
        self.data: Dict[str, bytes] = dict(initial or {})
        self.available = available

    async def is_available(self) -> bool:
        return self.available

    async def get_data(self, key: str) -> bytes:
        return self.data.get(key, b"")

    async def set_data(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)

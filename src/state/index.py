from __future__ import annotations

from typing import List

from common.errors import DecodeError
from common.logger import module_logger
from .codec import decode_index, encode_index
from .store import INDEX_KEY, KeyValueStore


log = module_logger(__name__)


class IndexManager:
    """
    Keeps the list of every will id under the `will_keys` key.

    The store cannot enumerate keys, so this list is the only way to find
    records. Appends rewrite the whole list: two clients appending at the same
    time race and the last writer drops the other's id. Closing that gap needs
    a compare-and-swap on the store or an append-only log instead of a list.
    """

    def __init__(self, store: KeyValueStore, *, key: str = INDEX_KEY) -> None:
        self._store = store
        self._key = key

    async def load_index(self) -> List[str]:
        """Return the stored ids in insertion order; malformed or absent → []."""
        try:
            raw = await self._store.get_data(self._key)
            return decode_index(raw) if raw else []
        except DecodeError as ex:
            log.warning("Ignoring malformed index under %s: %s", self._key, ex)
            return []

    async def append_index(self, will_id: str) -> List[str]:
        """Append `will_id` (once) and write the full list back; returns it."""
        ids = await self.load_index()
        if will_id in ids:
            return ids
        ids.append(will_id)
        await self._store.set_data(self._key, encode_index(ids))
        log.debug("Index %s now holds %d ids", self._key, len(ids))
        return ids

from __future__ import annotations

import secrets
import string
import time
from typing import Callable, Iterable, List, Optional

from common.errors import (
    DecodeError,
    InvalidTransitionError,
    InvalidWillError,
    NotAuthorizedError,
    NotFoundError,
    StoreUnavailableError,
    TransportError,
)
from common.logger import module_logger
from common.payload import seal
from state.codec import decode_record, encode_record
from state.index import IndexManager
from state.models import WillDraft, WillRecord, WillStats, WillStatus
from state.store import KeyValueStore, record_key


log = module_logger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_will_id(clock: Callable[[], float] = time.time) -> str:
    """Time-based id with a random base36 suffix, e.g. "1718000000000-k3j9x0a"."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"{int(clock() * 1000)}-{suffix}"


class WillRegistry:
    """
    Create, list and transition will records over a bare key/value store.

    Layout in the store
    - `will_keys`:   JSON list of every created id (see `IndexManager`).
    - `will_<id>`:   JSON record (see `state.codec`).

    State machine: draft -> active -> revoked. `executed` is a valid stored
    value that nothing here produces.

    Notes
    - Every store call is awaited in sequence; one registry issues its
      operations in order, but separate clients are not coordinated.
    - Transitions are read-modify-write of the whole record. Two clients
      mutating the same record race and the last write wins.
    - `create` writes the record and then the index. If the index write fails
      the error propagates and the record stays reachable only by id.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        index: Optional[IndexManager] = None,
        clock: Callable[[], float] = time.time,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._store = store
        self._index = index or IndexManager(store)
        self._clock = clock
        self._id_factory = id_factory or (lambda: new_will_id(self._clock))
        self.last_listing: Optional[List[WillRecord]] = None

    # --------------- Public API ---------------
    async def create(self, owner: str, beneficiary: str, payload: str) -> str:
        """Store a new draft will and register its id; returns the id."""
        if not owner:
            raise InvalidWillError("owner is required")
        if not beneficiary:
            raise InvalidWillError("beneficiary is required")
        if not payload:
            raise InvalidWillError("payload is required")
        await self._ensure_available()

        will_id = self._id_factory()
        record = WillRecord(
            id=will_id,
            payload=payload,
            created_at=int(self._clock()),
            owner=owner,
            beneficiary=beneficiary,
            status=WillStatus.DRAFT,
        )
        await self._store.set_data(record_key(will_id), encode_record(record))
        try:
            await self._index.append_index(will_id)
        except TransportError:
            log.error("Will %s stored but not indexed; it will not appear in listings", will_id)
            raise
        log.info("Created will %s for owner %s", will_id, owner)
        return will_id

    async def create_from_draft(self, owner: str, draft: WillDraft) -> str:
        """Seal the draft's fields into a payload and create the will."""
        payload = seal(draft.model_dump())
        return await self.create(owner, draft.beneficiary, payload)

    async def list(self) -> List[WillRecord]:
        """Return every readable indexed will, newest first.

        Raises `StoreUnavailableError` instead of returning an empty list when
        the store is not ready. Missing or undecodable records are skipped.
        """
        await self._ensure_available()

        records: List[WillRecord] = []
        for will_id in await self._index.load_index():
            try:
                raw = await self._store.get_data(record_key(will_id))
                if not raw:
                    log.warning("Indexed will %s has no record; skipping", will_id)
                    continue
                records.append(decode_record(raw, will_id))
            except (DecodeError, TransportError) as ex:
                log.warning("Skipping will %s: %s", will_id, ex)

        records.sort(key=lambda r: r.created_at, reverse=True)
        self.last_listing = records
        return records

    async def get(self, will_id: str) -> WillRecord:
        await self._ensure_available()
        raw = await self._store.get_data(record_key(will_id))
        if not raw:
            raise NotFoundError(will_id)
        return decode_record(raw, will_id)

    async def activate(self, will_id: str, acting_identity: str) -> WillRecord:
        return await self._transition(will_id, acting_identity, WillStatus.DRAFT, WillStatus.ACTIVE)

    async def revoke(self, will_id: str, acting_identity: str) -> WillRecord:
        return await self._transition(will_id, acting_identity, WillStatus.ACTIVE, WillStatus.REVOKED)

    def stats(self, records: Optional[Iterable[WillRecord]] = None) -> WillStats:
        """Count wills per status over `records`, or over the last listing."""
        items = list(records) if records is not None else list(self.last_listing or [])
        counts = {status: 0 for status in WillStatus}
        for r in items:
            counts[r.status] += 1
        return WillStats(
            total=len(items),
            draft=counts[WillStatus.DRAFT],
            active=counts[WillStatus.ACTIVE],
            executed=counts[WillStatus.EXECUTED],
            revoked=counts[WillStatus.REVOKED],
        )

    def search(self, term: str, records: Optional[Iterable[WillRecord]] = None) -> List[WillRecord]:
        """Case-insensitive substring filter on beneficiary or status."""
        items = list(records) if records is not None else list(self.last_listing or [])
        needle = (term or "").strip().lower()
        if not needle:
            return items
        return [r for r in items if needle in r.beneficiary.lower() or needle in r.status.value]

    @staticmethod
    def is_owner(record: WillRecord, identity: str) -> bool:
        return record.is_owned_by(identity)

    # --------------- Internal ---------------
    async def _ensure_available(self) -> None:
        if not await self._store.is_available():
            raise StoreUnavailableError("Key/value store is not available")

    async def _transition(
        self,
        will_id: str,
        acting_identity: str,
        expected: WillStatus,
        target: WillStatus,
    ) -> WillRecord:
        record = await self.get(will_id)
        if not record.is_owned_by(acting_identity):
            raise NotAuthorizedError(f"{acting_identity or '<none>'} does not own will {will_id}")
        if record.status is not expected:
            raise InvalidTransitionError(will_id, record.status.value, target.value)

        updated = record.with_status(target)
        await self._store.set_data(record_key(will_id), encode_record(updated))
        log.info("Will %s: %s -> %s", will_id, expected.value, target.value)
        return updated


__all__ = ["WillRegistry", "new_will_id"]

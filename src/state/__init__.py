"""
Storage layer for will records.

Models, the JSON wire codec, the id index kept under `will_keys`, and the
key/value store adapters (in-memory, HTTP ledger gateway, S3).
"""

from .codec import decode_index, decode_record, encode_index, encode_record
from .index import IndexManager
from .models import WillDraft, WillRecord, WillStats, WillStatus
from .store import INDEX_KEY, InMemoryStore, KeyValueStore, record_key

__all__ = [
    "WillRecord",
    "WillStatus",
    "WillDraft",
    "WillStats",
    "IndexManager",
    "KeyValueStore",
    "InMemoryStore",
    "INDEX_KEY",
    "record_key",
    "encode_record",
    "decode_record",
    "encode_index",
    "decode_index",
]

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from common.errors import DecodeError
from .models import WillRecord, WillStatus


def _dumps(obj: Any) -> bytes:
    # Deterministic JSON: stable key order, no extra whitespace
    return json.dumps(obj, separators=(",", ":"), sort_keys=True).encode("utf-8")


def _loads(data: bytes, what: str) -> Any:
    try:
        return json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as ex:
        raise DecodeError(f"Malformed {what} bytes") from ex


def encode_record(record: WillRecord) -> bytes:
    """Serialize a record to the wire schema stored under `will_<id>`.

    Wire keys: data, timestamp, owner, beneficiary, status. The id is the key
    suffix and is not repeated in the payload.
    """
    return _dumps(
        {
            "data": record.payload,
            "timestamp": record.created_at,
            "owner": record.owner,
            "beneficiary": record.beneficiary,
            "status": record.status.value,
        }
    )


def decode_record(data: bytes, record_id: str) -> WillRecord:
    """Parse wire bytes into a `WillRecord`.

    A missing or empty `status` reads as draft. Raises `DecodeError` for
    anything that is not a JSON object matching the schema.
    """
    raw = _loads(data, f"record {record_id}")
    if not isinstance(raw, dict):
        raise DecodeError(f"Record {record_id} is not a JSON object")

    fields: Dict[str, Any] = {
        "id": record_id,
        "payload": raw.get("data"),
        "created_at": raw.get("timestamp"),
        "owner": raw.get("owner"),
        "beneficiary": raw.get("beneficiary"),
        "status": raw.get("status") or WillStatus.DRAFT.value,
    }
    try:
        return WillRecord.model_validate(fields)
    except ValidationError as ve:
        raise DecodeError(f"Record {record_id} does not match schema: {ve}") from ve


def encode_index(ids: Sequence[str]) -> bytes:
    return _dumps(list(ids))


def decode_index(data: bytes) -> List[str]:
    raw = _loads(data, "index")
    if not isinstance(raw, list) or not all(isinstance(i, str) for i in raw):
        raise DecodeError("Index is not a JSON array of strings")
    return raw


__all__ = ["encode_record", "decode_record", "encode_index", "decode_index"]

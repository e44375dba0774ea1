from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict

from .errors import DecodeError


# Payloads are tagged so later formats can coexist with stored ones.
PAYLOAD_TAG_V1 = "fhe-mock/v1:"
LEGACY_PAYLOAD_TAG = "FHE-"


def seal(fields: Dict[str, Any]) -> str:
    """Pack form fields into an opaque payload string.

    This is a reversible encoding (base64 of JSON), not encryption. It only
    gives records a stable, versioned blob format.
    """
    body = json.dumps(fields, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return PAYLOAD_TAG_V1 + base64.b64encode(body).decode("ascii")


def open_payload(payload: str) -> Dict[str, Any]:
    """Reverse `seal`; also reads the untagged-version `FHE-` payloads.

    Raises `DecodeError` for unknown tags or corrupt bodies.
    """
    if payload.startswith(PAYLOAD_TAG_V1):
        encoded = payload[len(PAYLOAD_TAG_V1):]
    elif payload.startswith(LEGACY_PAYLOAD_TAG):
        encoded = payload[len(LEGACY_PAYLOAD_TAG):]
    else:
        raise DecodeError("Unknown payload format")

    try:
        raw = json.loads(base64.b64decode(encoded, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as ex:
        raise DecodeError("Corrupt payload body") from ex
    if not isinstance(raw, dict):
        raise DecodeError("Payload body is not a JSON object")
    return raw

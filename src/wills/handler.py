from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from pydantic import ValidationError

from common.errors import InvalidWillError, WillError
from common.logger import get_logger
from state.models import WillDraft, WillRecord
from wills.config import build_store
from wills.registry import WillRegistry


log = get_logger()


def _record_out(record: WillRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json")


def _error_out(err: WillError) -> Dict[str, Any]:
    return {"ok": False, "error": {"code": err.code, "message": str(err)}}


def _require_field(event: Dict[str, Any], name: str) -> str:
    v = event.get(name)
    if not isinstance(v, str) or not v:
        raise InvalidWillError(f"Missing required field: {name}")
    return v


async def handle(event: Dict[str, Any], *, registry: Optional[WillRegistry] = None) -> Dict[str, Any]:
    """
    Dispatch one action against the registry.

    Events
    - {"action": "create", "owner", "beneficiary", "payload"}
      or {"action": "create", "owner", "draft": {"beneficiary", "conditions", "assets"}}
    - {"action": "list", "search"?}
    - {"action": "activate" | "revoke", "id", "identity"}
    - {"action": "stats"}

    Returns {"ok": True, ...} or {"ok": False, "error": {"code", "message"}}
    where `code` is the error's stable kind (e.g. "not_found", "rejected").
    """
    owned_store = None
    if registry is None:
        owned_store = build_store()
        registry = WillRegistry(owned_store)
    try:
        return await _dispatch(registry, event)
    finally:
        aclose = getattr(owned_store, "aclose", None)
        if aclose is not None:
            await aclose()


async def _dispatch(registry: WillRegistry, event: Dict[str, Any]) -> Dict[str, Any]:
    action = event.get("action")
    try:
        if action == "create":
            owner = _require_field(event, "owner")
            draft = event.get("draft")
            if isinstance(draft, dict):
                try:
                    parsed = WillDraft.model_validate(draft)
                except ValidationError as ve:
                    raise InvalidWillError(f"Invalid draft: {ve}") from ve
                will_id = await registry.create_from_draft(owner, parsed)
            else:
                will_id = await registry.create(
                    owner, _require_field(event, "beneficiary"), _require_field(event, "payload")
                )
            return {"ok": True, "id": will_id}

        if action == "list":
            records = await registry.list()
            term = event.get("search")
            if isinstance(term, str) and term:
                records = registry.search(term, records)
            return {"ok": True, "wills": [_record_out(r) for r in records]}

        if action in ("activate", "revoke"):
            will_id = _require_field(event, "id")
            # An absent identity is rejected by the ownership check
            identity = event.get("identity")
            if not isinstance(identity, str):
                identity = ""
            op = registry.activate if action == "activate" else registry.revoke
            record = await op(will_id, identity)
            return {"ok": True, "will": _record_out(record)}

        if action == "stats":
            records = await registry.list()
            return {"ok": True, "stats": registry.stats(records).model_dump()}
    except WillError as err:
        log.warning("Action %s failed: %s (%s)", action, err, err.code)
        return _error_out(err)

    return {"ok": False, "error": {"code": "unknown_action", "message": f"Unknown action: {action!r}"}}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda entry for will registry actions.

    Environment:
    - WILL_STORE_BACKEND: memory | http | s3
    - http: WILL_GATEWAY_URL, WILL_GATEWAY_TOKEN (optional), WILL_GATEWAY_TIMEOUT
    - s3:   WILL_STATE_BUCKET, WILL_STATE_PREFIX (default wills/), WILL_FERNET_KEY
    """
    return asyncio.run(handle(event))

from __future__ import annotations

import asyncio
from typing import Any, Dict

import pytest

from common.errors import TransactionRejectedError
from state.store import InMemoryStore, record_key
from wills import handler
from wills.registry import WillRegistry


class _RejectingStore(InMemoryStore):
    async def set_data(self, key: str, value: bytes) -> None:
        raise TransactionRejectedError("user rejected transaction")


def _call(reg: WillRegistry, **event: Any) -> Dict[str, Any]:
    return asyncio.run(handler.handle(event, registry=reg))


def test_create_list_activate_roundtrip(store: InMemoryStore, clock):
    reg = WillRegistry(store, clock=clock)

    created = _call(reg, action="create", owner="0xA", beneficiary="0xB", payload="blob")
    assert created["ok"] is True
    wid = created["id"]

    out = _call(reg, action="activate", id=wid, identity="0xa")
    assert out == {
        "ok": True,
        "will": {
            "id": wid,
            "payload": "blob",
            "created_at": int(clock()),
            "owner": "0xA",
            "beneficiary": "0xB",
            "status": "active",
        },
    }

    listed = _call(reg, action="list", search="act")
    assert [w["id"] for w in listed["wills"]] == [wid]
    assert _call(reg, action="stats")["stats"]["active"] == 1


def test_create_from_draft(store: InMemoryStore, clock):
    reg = WillRegistry(store, clock=clock)
    out = _call(reg, action="create", owner="0xA", draft={"beneficiary": "0xB", "assets": "house"})

    assert out["ok"] is True
    assert store.data[record_key(out["id"])]


@pytest.mark.parametrize(
    "event, code",
    [
        ({"action": "activate", "id": "missing", "identity": "0xA"}, "not_found"),
        ({"action": "create", "owner": "0xA", "beneficiary": "0xB"}, "invalid_will"),
        ({"action": "create", "owner": "0xA", "draft": {"beneficiary": ["not", "a", "string"]}}, "invalid_will"),
        ({"action": "teleport"}, "unknown_action"),
    ],
)
def test_errors_are_typed(store: InMemoryStore, clock, event: Dict[str, Any], code: str):
    out = _call(WillRegistry(store, clock=clock), **event)
    assert out["ok"] is False
    assert out["error"]["code"] == code


def test_unavailable_store_is_not_an_empty_list(clock):
    out = _call(WillRegistry(InMemoryStore(available=False), clock=clock), action="list")
    assert out["error"]["code"] == "store_unavailable"
    assert "wills" not in out


def test_signer_rejection_is_distinguishable(clock):
    out = _call(WillRegistry(_RejectingStore(), clock=clock), action="create", owner="0xA", beneficiary="0xB", payload="p")
    assert out["error"]["code"] == "rejected"


def test_lambda_handler_uses_configured_store(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WILL_STORE_BACKEND", "memory")
    out = handler.lambda_handler({"action": "list"}, None)
    assert out == {"ok": True, "wills": []}


@pytest.mark.parametrize("action", ["activate", "revoke"])
def test_missing_identity_is_not_authorized(store: InMemoryStore, clock, action: str):
    reg = WillRegistry(store, clock=clock)
    wid = _call(reg, action="create", owner="0xA", beneficiary="0xB", payload="p")["id"]

    out = _call(reg, action=action, id=wid)

    assert out["error"]["code"] == "not_authorized"
    assert store.writes == [record_key(wid), "will_keys"]

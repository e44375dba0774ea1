from __future__ import annotations

import asyncio
import importlib

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError
from cryptography.fernet import Fernet

from common.errors import DecodeError, TransportError
from state.s3_store import S3KeyValueStore
from state.store import INDEX_KEY, record_key
from wills.registry import WillRegistry


FERNET_KEY = Fernet.generate_key()


class _FakeBody:
    def __init__(self, data: bytes) -> None:
        self._data = data

    def read(self) -> bytes:
        return self._data


class _FakeS3:
    def __init__(self, *, buckets=("b",)) -> None:
        self._buckets = set(buckets)
        self._store = {}  # (bucket, key) -> bytes
        self.fail_puts = False

    def head_bucket(self, *, Bucket: str):
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404"}}, "HeadBucket")
        return {}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, ContentType: str):
        if self.fail_puts:
            raise ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")
        self._store[(Bucket, Key)] = Body
        return {"ETag": f'"fake-{len(Body)}"'}

    def get_object(self, *, Bucket: str, Key: str):
        item = self._store.get((Bucket, Key))
        if item is None:
            raise ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        return {"Body": _FakeBody(item)}


def _store(s3: _FakeS3, **kw) -> S3KeyValueStore:
    return S3KeyValueStore(s3=s3, bucket="b", fernet_key=FERNET_KEY, **kw)


def test_get_missing_returns_empty_bytes():
    store = _store(_FakeS3())
    assert asyncio.run(store.get_data("will_keys")) == b""


def test_set_then_get_roundtrip_is_encrypted_at_rest():
    s3 = _FakeS3()
    store = _store(s3, prefix="p/")

    asyncio.run(store.set_data("will_1", b'{"status":"draft"}'))

    stored = s3._store[("b", "p/will_1")]
    assert b"draft" not in stored
    assert asyncio.run(store.get_data("will_1")) == b'{"status":"draft"}'


def test_get_raises_decode_error_on_bad_token():
    s3 = _FakeS3()
    s3.put_object(Bucket="b", Key="wills/will_1", Body=b"garbage", ContentType="application/octet-stream")

    with pytest.raises(DecodeError):
        asyncio.run(_store(s3).get_data("will_1"))


def test_put_failure_surfaces_as_transport_error():
    s3 = _FakeS3()
    s3.fail_puts = True

    with pytest.raises(TransportError):
        asyncio.run(_store(s3).set_data("will_1", b"x"))


def test_availability_follows_head_bucket():
    assert asyncio.run(_store(_FakeS3()).is_available()) is True
    assert asyncio.run(_store(_FakeS3(buckets=())).is_available()) is False


def test_from_env_missing_vars_raises(monkeypatch):
    for name in ("WILL_STATE_BUCKET", "WILL_STATE_PREFIX", "WILL_FERNET_KEY"):
        monkeypatch.delenv(name, raising=False)

    mod = importlib.import_module("state.s3_store")
    with pytest.raises(RuntimeError, match="WILL_STATE_BUCKET"):
        mod.S3KeyValueStore.from_env()


class _TimeoutBody:
    def read(self) -> bytes:
        raise ReadTimeoutError(endpoint_url="https://s3.test")


def test_body_read_failure_surfaces_as_transport_error():
    s3 = _FakeS3()
    s3.get_object = lambda **_kw: {"Body": _TimeoutBody()}

    with pytest.raises(TransportError):
        asyncio.run(_store(s3).get_data("will_w1"))


def test_listing_skips_record_whose_body_read_times_out():
    s3 = _FakeS3()
    store = _store(s3)
    asyncio.run(store.set_data(INDEX_KEY, b'["w1"]'))

    def get_object(*, Bucket: str, Key: str):
        if Key.endswith(record_key("w1")):
            return {"Body": _TimeoutBody()}
        return {"Body": _FakeBody(s3._store[(Bucket, Key)])}

    s3.get_object = get_object
    assert asyncio.run(WillRegistry(store).list()) == []

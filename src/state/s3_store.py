from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from cryptography.fernet import Fernet, InvalidToken

from common.errors import DecodeError, TransportError
from common.logger import module_logger


log = module_logger(__name__)

# Environment variable names for convenience configuration
ENV_BUCKET = "WILL_STATE_BUCKET"
ENV_PREFIX = "WILL_STATE_PREFIX"
ENV_FERNET_KEY = "WILL_FERNET_KEY"

DEFAULT_PREFIX = "wills/"
_MISSING_CODES = ("NoSuchKey", "404", "NotFound")


def _to_fernet(key: str | bytes) -> Fernet:
    """Construct a Fernet instance from a user-provided key.

    The key must be a URL-safe base64-encoded 32-byte key (str or bytes),
    as returned by `cryptography.fernet.Fernet.generate_key()`.
    """
    if isinstance(key, str):
        key_bytes = key.encode("utf-8")
    else:
        key_bytes = key
    return Fernet(key_bytes)


def _error_code(e: ClientError) -> Optional[str]:
    return e.response.get("Error", {}).get("Code")


@dataclass
class S3Location:
    bucket: str
    prefix: str

    def object_key(self, key: str) -> str:
        return f"{self.prefix}{key}"


class S3KeyValueStore:
    """
    `KeyValueStore` keeping one S3 object per key, encrypted at rest with Fernet.

    Usage
    - Provide a bucket, an optional key prefix and a Fernet key (or `from_env()`).
    - `get_data(key)` returns b"" when the object does not exist.
    - `set_data(key, value)` overwrites unconditionally; the registry's
      read-modify-write races are not arbitrated here either.
    - `is_available()` is a `head_bucket` probe.

    boto3 is blocking, so each call runs in a worker thread.

    Environment variables (optional)
    - `WILL_STATE_BUCKET`: S3 bucket holding the objects
    - `WILL_STATE_PREFIX`: key prefix (default "wills/")
    - `WILL_FERNET_KEY`:   urlsafe base64-encoded key for Fernet
    """

    def __init__(
        self,
        *,
        s3: Optional[object] = None,
        bucket: str,
        prefix: str = DEFAULT_PREFIX,
        fernet_key: str | bytes,
        region_name: Optional[str] = None,
    ) -> None:
        self._s3 = s3 or boto3.client("s3", region_name=region_name)
        self._loc = S3Location(bucket=bucket, prefix=prefix)
        self._fernet = _to_fernet(fernet_key)

    # -------- Construction helpers --------
    @classmethod
    def from_env(cls) -> "S3KeyValueStore":
        bucket = os.environ.get(ENV_BUCKET)
        fkey = os.environ.get(ENV_FERNET_KEY)
        if not bucket or not fkey:
            missing = [name for name, val in [(ENV_BUCKET, bucket), (ENV_FERNET_KEY, fkey)] if not val]
            raise RuntimeError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        prefix = os.environ.get(ENV_PREFIX) or DEFAULT_PREFIX
        return cls(bucket=bucket, prefix=prefix, fernet_key=fkey)

    # -------- KeyValueStore --------
    async def is_available(self) -> bool:
        return await asyncio.to_thread(self._head_bucket)

    async def get_data(self, key: str) -> bytes:
        return await asyncio.to_thread(self._read, key)

    async def set_data(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, value)

    # -------- Blocking helpers --------
    def _head_bucket(self) -> bool:
        try:
            self._s3.head_bucket(Bucket=self._loc.bucket)
        except (ClientError, BotoCoreError) as e:
            log.warning("Bucket %s not reachable: %s", self._loc.bucket, e)
            return False
        return True

    def _read(self, key: str) -> bytes:
        """Read and decrypt one value.

        Raises:
        - DecodeError if decryption fails.
        - TransportError for S3 failures other than a missing object.
        """
        object_key = self._loc.object_key(key)
        try:
            resp = self._s3.get_object(Bucket=self._loc.bucket, Key=object_key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return b""
            raise TransportError(f"get_object failed for s3://{self._loc.bucket}/{object_key}") from e
        except BotoCoreError as e:
            raise TransportError(f"get_object failed for s3://{self._loc.bucket}/{object_key}") from e

        try:
            body = resp["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f"Reading s3://{self._loc.bucket}/{object_key} failed") from e
        if not body:
            return b""
        try:
            return self._fernet.decrypt(body)
        except InvalidToken as ex:
            raise DecodeError(f"Failed to decrypt {key}: invalid Fernet token") from ex

    def _write(self, key: str, value: bytes) -> None:
        object_key = self._loc.object_key(key)
        ciphertext = self._fernet.encrypt(bytes(value))
        try:
            self._s3.put_object(
                Bucket=self._loc.bucket,
                Key=object_key,
                Body=ciphertext,
                ContentType="application/octet-stream",
            )
        except (ClientError, BotoCoreError) as e:
            raise TransportError(f"put_object failed for s3://{self._loc.bucket}/{object_key}") from e
        log.debug("put_object s3://%s/%s", self._loc.bucket, object_key)


__all__ = ["S3KeyValueStore", "S3Location"]

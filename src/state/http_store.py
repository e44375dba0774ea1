from __future__ import annotations

import base64
import binascii
import os
from typing import Any, Dict, Optional

import httpx

from common.errors import TransactionRejectedError, TransportError
from common.logger import module_logger
from common.rate_limiter import SlidingWindowRateLimiter


log = module_logger(__name__)

ENV_GATEWAY_URL = "WILL_GATEWAY_URL"
ENV_GATEWAY_TOKEN = "WILL_GATEWAY_TOKEN"
ENV_GATEWAY_TIMEOUT = "WILL_GATEWAY_TIMEOUT"

_REJECTED_CODES = {"USER_REJECTED", "ACTION_REJECTED", "4001"}


def _is_rejection(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    err = body.get("error")
    if isinstance(err, dict):
        code = str(err.get("code", "")).upper()
        message = str(err.get("message", ""))
    else:
        code = ""
        message = str(err or body.get("message", ""))
    return code in _REJECTED_CODES or "user rejected" in message.lower()


class HttpLedgerStore:
    """
    `KeyValueStore` backed by an HTTP gateway in front of the ledger contract.

    Endpoints
    - GET  /available -> {"available": bool}
    - POST /getData   {"key"}          -> {"value": "<base64>"}  ("" = absent)
    - POST /setData   {"key", "value"} -> {"ok": true}

    Notes
    - Values travel base64-encoded in JSON bodies.
    - A signer refusal ("user rejected", code USER_REJECTED/4001) raises
      `TransactionRejectedError`; other HTTP or network failures raise
      `TransportError`. Nothing is retried here.
    - A local sliding-window limiter spaces requests (default 10 req/sec).
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 15.0,
        max_per_second: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        headers = {"Authorization": f"Bearer {token}"} if token else None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout, headers=headers
        )
        self._limiter = SlidingWindowRateLimiter(max_calls=max_per_second, per_seconds=1.0)

    @classmethod
    def from_env(cls) -> "HttpLedgerStore":
        url = os.environ.get(ENV_GATEWAY_URL)
        if not url:
            raise RuntimeError(f"Missing required configuration: {ENV_GATEWAY_URL}")
        timeout = float(os.environ.get(ENV_GATEWAY_TIMEOUT) or 15.0)
        return cls(url, token=os.environ.get(ENV_GATEWAY_TOKEN) or None, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpLedgerStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --------------- KeyValueStore ---------------
    async def is_available(self) -> bool:
        """Probe the gateway; transport failures count as unavailable."""
        try:
            data = await self._request("GET", "/available")
        except TransportError as ex:
            log.warning("Availability probe failed: %s", ex)
            return False
        return bool(data.get("available"))

    async def get_data(self, key: str) -> bytes:
        data = await self._request("POST", "/getData", {"key": key})
        value = data.get("value") or ""
        if not isinstance(value, str):
            raise TransportError(f"Malformed getData response for {key}")
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as ex:
            raise TransportError(f"getData returned non-base64 value for {key}") from ex

    async def set_data(self, key: str, value: bytes) -> None:
        body = {"key": key, "value": base64.b64encode(value).decode("ascii")}
        data = await self._request("POST", "/setData", body)
        if data.get("ok") is not True:
            if _is_rejection(data):
                raise TransactionRejectedError(f"setData rejected for {key}")
            raise TransportError(f"setData not acknowledged for {key}")
        log.debug("setData %s (%d bytes)", key, len(value))

    # --------------- Internal ---------------
    async def _request(self, method: str, path: str, json_body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        await self._limiter.acquire()
        try:
            resp = await self._client.request(method, path, json=json_body)
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code != 200:
            if _is_rejection(body):
                raise TransactionRejectedError(
                    f"Transaction rejected by user ({path})", status_code=resp.status_code
                )
            raise TransportError(
                f"HTTP {resp.status_code} from ledger gateway: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        if not isinstance(body, dict):
            raise TransportError(f"Malformed response from ledger gateway ({path})")
        return body


__all__ = ["HttpLedgerStore"]

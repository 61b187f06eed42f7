import base64
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from .errors import (
    InvalidVnodeCountError,
    NoMembersError,
    NotAvailableOnceMembersAddedError,
    NotEnoughMembersError,
)
from .config import RingConfig
from .hashing import Key

log = logging.getLogger("ring.client")

def _key_params(key: Key) -> Dict[str, str]:
    if isinstance(key, str):
        return {"key": key}
    if isinstance(key, (bytes, bytearray, memoryview)):
        return {"key": base64.urlsafe_b64encode(bytes(key)).decode("ascii"), "b64": "true"}
    raise TypeError(f"key must be str or bytes, not {type(key).__name__}")

class RingClient:
    """Talks to a ring served by ``ringhash.api``.

    Error responses are turned back into the library's exceptions so callers
    handle a remote ring the same way as a local one.
    """

    def __init__(self, base_url: str = "", timeout_s: float = 1.5, client: Optional[httpx.Client] = None):
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(base_url=base_url, timeout=timeout_s)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "RingClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _check(self, r: httpx.Response) -> Dict[str, Any]:
        if r.status_code == 200:
            return r.json()
        detail = r.json().get("detail") if r.headers.get("content-type", "").startswith("application/json") else None
        error = detail.get("error") if isinstance(detail, dict) else None
        log.debug("ring request %s failed: %s %s", r.request.url, r.status_code, detail)
        if error == "no_members":
            raise NoMembersError()
        if error == "not_enough_members":
            raise NotEnoughMembersError(detail["wanted"], detail["available"])
        if error == "not_available_once_members_added":
            raise NotAvailableOnceMembersAddedError()
        if error == "invalid_vnode_count":
            raise InvalidVnodeCountError(detail["count"])
        r.raise_for_status()
        return r.json()

    def health(self) -> Dict[str, Any]:
        return self._check(self._client.get("/health"))

    def members(self) -> List[str]:
        return self._check(self._client.get("/members"))["members"]

    def add(self, address: str) -> bool:
        return self._check(self._client.post("/members", json={"address": address}))["added"]

    def remove(self, address: str) -> bool:
        return self._check(self._client.delete(f"/members/{quote(address, safe='')}"))["removed"]

    def get(self, key: Key) -> str:
        return self._check(self._client.get("/lookup", params=_key_params(key)))["address"]

    def get_n(self, key: Key, count: int) -> List[str]:
        params = _key_params(key)
        params["count"] = str(count)
        return self._check(self._client.get("/lookup/n", params=params))["addresses"]

    def get2(self, key: Key) -> Tuple[str, str]:
        first, second = self.get_n(key, 2)
        return first, second

    def set_vnode_count(self, count: int) -> int:
        return self._check(self._client.put("/config/vnodes", json={"count": count}))["vnode_count"]

    @classmethod
    def from_config(cls, cfg: RingConfig) -> "RingClient":
        return cls(cfg.base_url, timeout_s=cfg.request_timeout_s)

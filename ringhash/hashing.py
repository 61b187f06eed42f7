import threading
from typing import Callable, List, Tuple, Union

import mmh3

from .errors import (
    InvalidVnodeCountError,
    NoMembersError,
    NotAvailableOnceMembersAddedError,
    NotEnoughMembersError,
)
from .membership import Membership
from .ring import RingStore, VirtualNode

# Trade-off between memory / lookup depth and how evenly keys spread.
DEFAULT_VNODE_COUNT = 200

HashFn = Callable[[bytes], int]
Key = Union[bytes, str]


def murmur64(data: bytes) -> int:
    # Return the first 64 bits of murmur3 x64-128 (seed 0) as an unsigned int.
    return mmh3.hash64(data, signed=False)[0]


def vnode_key(address: str, index: int) -> bytes:
    # Digits then "=": the first "=" always splits index from address, so no two pairs collide
    return f"{index}={address}".encode("utf-8")


def _to_bytes(key: Key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    raise TypeError(f"key must be str or bytes, not {type(key).__name__}")


# Consistent hashing ring with a fixed number of virtual nodes per address
class ConsistentHash:
    def __init__(self, vnode_count: int = DEFAULT_VNODE_COUNT, hash_fn: HashFn = murmur64):
        if vnode_count < 1:
            raise InvalidVnodeCountError(vnode_count)
        self._vnode_count = vnode_count
        self._hash = hash_fn
        self._ring = RingStore()
        self._members = Membership()
        # Not reentrant: a public method must never call another locking one while holding it.
        self._lock = threading.Lock()

    @property
    def vnode_count(self) -> int:
        return self._vnode_count

    def set_vnode_count(self, count: int) -> None:
        """Set the number of vnodes added for every address.

        Only valid before the first add(). Takes no lock, so it must not race
        with add().
        """
        if len(self._members) > 0:
            raise NotAvailableOnceMembersAddedError()
        if count < 1:
            raise InvalidVnodeCountError(count)
        self._vnode_count = count

    def _tokens_for(self, address: str) -> List[int]:
        return [self._hash(vnode_key(address, i)) for i in range(self._vnode_count)]

    def add(self, address: str) -> bool:
        """Add ``address`` to the ring. Returns False if it was already present."""
        with self._lock:
            if address in self._members:
                return False
            for token in self._tokens_for(address):
                self._ring.insert(VirtualNode(token, address))
            self._members.add(address)
            return True

    def remove(self, address: str) -> bool:
        """Remove ``address`` from the ring. Returns False if it was absent."""
        with self._lock:
            if address not in self._members:
                return False
            for token in self._tokens_for(address):
                self._ring.remove(token)
            self._members.discard(address)
            return True

    def get(self, key: Key) -> str:
        with self._lock:
            if len(self._ring) == 0:
                raise NoMembersError()
            token = self._hash(_to_bytes(key))
            return self._ring[self._ring.closest(token)].address

    def get_n(self, key: Key, count: int) -> List[str]:
        """Return ``count`` distinct addresses walking clockwise from ``key``, nearest first."""
        with self._lock:
            available = len(self._members)
            if count > available:
                raise NotEnoughMembersError(count, available)
            token = self._hash(_to_bytes(key))
            seen = set()
            out: List[str] = []
            i = self._ring.closest(token)
            while len(out) < count:
                address = self._ring[i].address
                if address not in seen:
                    seen.add(address)
                    out.append(address)
                i += 1
                if i == len(self._ring):
                    i = 0
            return out

    def get2(self, key: Key) -> Tuple[str, str]:
        # no lock here, get_n takes it
        first, second = self.get_n(key, 2)
        return first, second

    def members(self) -> List[str]:
        with self._lock:
            return self._members.all_nodes()

    def vnodes(self) -> List[VirtualNode]:
        with self._lock:
            return list(self._ring)

    def __len__(self) -> int:
        with self._lock:
            return len(self._ring)

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return address in self._members

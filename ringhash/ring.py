from bisect import bisect_left
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class VirtualNode:
    token: int
    address: str

    def __str__(self) -> str:
        return f"token={self.token} address={self.address}"


class RingStore:
    """Virtual nodes kept sorted ascending by token.

    The key space is circular: the entry after the highest token is the
    lowest one. Duplicate tokens are kept side by side.
    """

    def __init__(self) -> None:
        self._vnodes: List[VirtualNode] = []
        # parallel token list so bisect works on plain ints
        self._tokens: List[int] = []

    def __len__(self) -> int:
        return len(self._vnodes)

    def __iter__(self):
        return iter(self._vnodes)

    def __getitem__(self, index: int) -> VirtualNode:
        return self._vnodes[index]

    def tokens(self) -> List[int]:
        return list(self._tokens)

    def index(self, token: int) -> int:
        # first position with a token >= token, len(self) if there is none
        return bisect_left(self._tokens, token)

    def closest(self, token: int) -> int:
        """Index of the vnode owning ``token``. Undefined on an empty ring."""
        idx = self.index(token)
        if idx == len(self._tokens):
            idx = 0
        return idx

    def insert(self, vn: VirtualNode) -> None:
        idx = self.index(vn.token)
        self._tokens.insert(idx, vn.token)
        self._vnodes.insert(idx, vn)

    def remove(self, token: int) -> Optional[VirtualNode]:
        """Delete one vnode at the search position for ``token``.

        Past the end the last vnode is deleted instead, so a non-empty store
        always shrinks by exactly one. Callers should only pass tokens that
        are present.
        """
        if not self._vnodes:
            return None
        idx = self.index(token)
        if idx == len(self._tokens):
            idx -= 1
        del self._tokens[idx]
        return self._vnodes.pop(idx)

from typing import Iterable, List, Set


class Membership:
    def __init__(self, addresses: Iterable[str] = ()):
        self._addresses: Set[str] = set(addresses)

    def __len__(self) -> int:
        return len(self._addresses)

    def __contains__(self, address: str) -> bool:
        return address in self._addresses

    def add(self, address: str) -> bool:
        if address in self._addresses:
            return False
        self._addresses.add(address)
        return True

    def discard(self, address: str) -> bool:
        if address not in self._addresses:
            return False
        self._addresses.remove(address)
        return True

    def all_nodes(self) -> List[str]:
        return sorted(self._addresses)

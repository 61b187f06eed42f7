from statistics import pstdev
from typing import Dict, Iterable, Mapping

from .hashing import ConsistentHash, Key

# Informational helpers for checking how evenly a ring spreads keys.

def assignments(ring: ConsistentHash, keys: Iterable[Key]) -> Dict[Key, str]:
    return {k: ring.get(k) for k in keys}


def distribution(ring: ConsistentHash, keys: Iterable[Key]) -> Dict[str, int]:
    counts = {m: 0 for m in ring.members()}
    for k in keys:
        counts[ring.get(k)] += 1
    return counts


def spread(counts: Mapping[str, int]) -> float:
    # population std dev of keys per member
    if not counts:
        return 0.0
    return pstdev(counts.values())


def remapped(before: Mapping[Key, str], after: Mapping[Key, str]) -> int:
    return sum(1 for k, owner in before.items() if after.get(k) != owner)

import random
import threading

import pytest

from ringhash.errors import (
    InvalidVnodeCountError,
    NoMembersError,
    NotAvailableOnceMembersAddedError,
    NotEnoughMembersError,
)
from ringhash.hashing import DEFAULT_VNODE_COUNT, ConsistentHash, murmur64, vnode_key


# Fixed tokens for a 2-vnode ring of s1/s2/s3 and seven keys:
#   50 k1 | 100 s1 | 150 k2 | 200 s3 | 250 k3 | 300 s2 | 400 k4 | 500 s3
#   550 k5 | 600 s1 | 700 k6 | 800 s2 | 900 k7 (wraps to s1)
TOKENS = {
    "0=s1": 100, "1=s1": 600,
    "0=s2": 300, "1=s2": 800,
    "0=s3": 200, "1=s3": 500,
    "k1": 50, "k2": 150, "k3": 250, "k4": 400, "k5": 550, "k6": 700, "k7": 900,
}


def fixed_hash(data: bytes) -> int:
    return TOKENS[data.decode("utf-8")]


@pytest.fixture
def fixed_ring():
    ring = ConsistentHash(vnode_count=2, hash_fn=fixed_hash)
    for s in ("s1", "s2", "s3"):
        ring.add(s)
    return ring


def _tokens(ring):
    return [vn.token for vn in ring.vnodes()]


def test_vnode_add_count():
    ring = ConsistentHash()
    ring.add("localhost")
    assert ring.vnode_count == DEFAULT_VNODE_COUNT
    assert len(ring) == DEFAULT_VNODE_COUNT


def test_vnode_key_puts_index_first():
    assert vnode_key("10.0.0.1", 3) == b"3=10.0.0.1"
    assert vnode_key("1", 11) != vnode_key("11", 1)


def test_murmur64_is_unsigned_64_bit():
    h = murmur64(b"server1")
    assert h == murmur64(b"server1")
    assert 0 <= h < 2 ** 64


def test_owner_is_stable():
    ring = ConsistentHash(vnode_count=10)
    for n in ("n1", "n2", "n3"):
        ring.add(n)

    owner1 = ring.get("example-key")
    owner2 = ring.get(b"example-key")

    assert owner1 == owner2
    assert owner1 in ring.members()


def test_get_on_empty_ring():
    ring = ConsistentHash()
    with pytest.raises(NoMembersError):
        ring.get("k")


def test_fixed_distribution(fixed_ring):
    owners = {k: fixed_ring.get(k) for k in ("k1", "k2", "k3", "k4", "k5", "k6", "k7")}
    assert owners == {
        "k1": "s1", "k2": "s3", "k3": "s2", "k4": "s3",
        "k5": "s1", "k6": "s2", "k7": "s1",
    }


def test_remove_only_moves_removed_members_keys(fixed_ring):
    keys = ("k1", "k2", "k3", "k4", "k5", "k6", "k7")
    before = {k: fixed_ring.get(k) for k in keys}

    fixed_ring.remove("s3")
    after = {k: fixed_ring.get(k) for k in keys}

    for k in keys:
        if before[k] == "s3":
            assert after[k] in ("s1", "s2")
        else:
            assert after[k] == before[k]
    assert after["k2"] == "s2"
    assert after["k4"] == "s1"


def test_get_n_walks_ring_in_order(fixed_ring):
    assert fixed_ring.get_n("k2", 3) == ["s3", "s2", "s1"]
    assert fixed_ring.get_n("k7", 2) == ["s1", "s3"]
    assert fixed_ring.get2("k6") == ("s2", "s1")


def test_get_n_not_enough_members():
    ring = ConsistentHash()
    ring.add("server1")
    ring.add("server2")
    with pytest.raises(NotEnoughMembersError):
        ring.get_n("testKey", 3)

    ring.add("server3")
    servers = ring.get_n("testKey", 3)
    assert len(servers) == 3
    assert set(servers) == {"server1", "server2", "server3"}


def test_get2():
    ring = ConsistentHash()
    ring.add("server1")
    ring.add("server2")
    first, second = ring.get2("testKey")
    assert {first, second} == {"server1", "server2"}


def test_get2_needs_two_members():
    ring = ConsistentHash()
    ring.add("server1")
    with pytest.raises(NotEnoughMembersError):
        ring.get2("testKey")


def test_get2_does_not_deadlock():
    ring = ConsistentHash(vnode_count=5)
    ring.add("a")
    ring.add("b")
    result = []
    t = threading.Thread(target=lambda: result.append(ring.get2("k")), daemon=True)
    t.start()
    t.join(timeout=5)
    assert not t.is_alive()
    assert len(result) == 1


def test_add_is_idempotent():
    ring = ConsistentHash(vnode_count=20)
    assert ring.add("a") is True
    snapshot = ring.vnodes()
    assert ring.add("a") is False
    assert ring.vnodes() == snapshot


def test_remove_absent_is_noop():
    ring = ConsistentHash(vnode_count=20)
    ring.add("a")
    snapshot = ring.vnodes()
    assert ring.remove("b") is False
    assert ring.vnodes() == snapshot


def test_add_then_remove_restores_ring():
    ring = ConsistentHash(vnode_count=50)
    ring.add("a")
    ring.add("b")
    snapshot = ring.vnodes()

    ring.add("c")
    assert len(ring) == 150
    ring.remove("c")

    assert ring.vnodes() == snapshot
    assert ring.members() == ["a", "b"]


def test_random_membership_changes_keep_invariants():
    rnd = random.Random(7)
    ring = ConsistentHash(vnode_count=16)
    names = [f"server{i}" for i in range(8)]
    for _ in range(60):
        name = rnd.choice(names)
        if rnd.random() < 0.6:
            ring.add(name)
        else:
            ring.remove(name)
        tokens = _tokens(ring)
        assert tokens == sorted(tokens)
        assert len(ring) == 16 * len(ring.members())
        assert {vn.address for vn in ring.vnodes()} == set(ring.members())


def test_concurrent_adds():
    ring = ConsistentHash(vnode_count=25)
    threads = [threading.Thread(target=ring.add, args=(f"n{i}",)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(ring.members()) == 8
    assert len(ring) == 200
    tokens = _tokens(ring)
    assert tokens == sorted(tokens)


def test_set_vnode_count():
    ring = ConsistentHash()
    ring.set_vnode_count(3)
    ring.add("a")
    assert len(ring) == 3

    with pytest.raises(NotAvailableOnceMembersAddedError):
        ring.set_vnode_count(5)

    ring.remove("a")
    ring.set_vnode_count(5)
    assert ring.vnode_count == 5


def test_invalid_vnode_count():
    ring = ConsistentHash()
    with pytest.raises(InvalidVnodeCountError):
        ring.set_vnode_count(0)
    with pytest.raises(ValueError):
        ring.set_vnode_count(-1)
    with pytest.raises(InvalidVnodeCountError):
        ConsistentHash(vnode_count=0)
    assert ring.vnode_count == DEFAULT_VNODE_COUNT


def test_contains():
    ring = ConsistentHash(vnode_count=1)
    ring.add("a")
    assert "a" in ring
    assert "b" not in ring


def test_key_types():
    ring = ConsistentHash(vnode_count=10)
    for n in ("n1", "n2", "n3"):
        ring.add(n)

    owner = ring.get(b"key")
    assert ring.get(bytearray(b"key")) == owner
    assert ring.get(memoryview(b"key")) == owner
    with pytest.raises(TypeError):
        ring.get(3)
    with pytest.raises(TypeError):
        ring.get_n(None, 1)

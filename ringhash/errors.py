class RingError(Exception):
    """Base class for hash ring errors."""


class InvalidVnodeCountError(RingError, ValueError):
    def __init__(self, count: int):
        super().__init__(f"vnode count must be > 0, got {count}")
        self.count = count


class NotAvailableOnceMembersAddedError(RingError):
    def __init__(self):
        super().__init__("not available once members are added")


# Capacity errors reflect the current membership, retrying without adding members won't help
class CapacityError(RingError):
    pass


class NoMembersError(CapacityError):
    def __init__(self):
        super().__init__("no members added")


class NotEnoughMembersError(CapacityError):
    def __init__(self, wanted: int, available: int):
        super().__init__(f"not enough members: wanted {wanted}, have {available}")
        self.wanted = wanted
        self.available = available

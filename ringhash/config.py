from dataclasses import dataclass, field
from typing import List

from .hashing import DEFAULT_VNODE_COUNT

@dataclass
class RingConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    members: List[str] = field(default_factory=list)
    vnode_count: int = DEFAULT_VNODE_COUNT
    debug: bool = False

    request_timeout_s: float = 1.5

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

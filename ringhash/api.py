import base64
import binascii
import logging
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional, Union

from .config import RingConfig
from .errors import (
    InvalidVnodeCountError,
    NoMembersError,
    NotAvailableOnceMembersAddedError,
    NotEnoughMembersError,
)
from .hashing import ConsistentHash
from .logging_setup import setup_logging

log = logging.getLogger("ring.api")

class MemberReq(BaseModel):
    address: str

class VnodeCountReq(BaseModel):
    count: int

def _lookup_key(key: str, b64: bool) -> Union[str, bytes]:
    # b64 keys carry raw bytes that may not be valid UTF-8
    if not b64:
        return key
    try:
        return base64.urlsafe_b64decode(key.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError):
        raise HTTPException(status_code=422, detail={"error": "invalid_key_encoding"})

def create_app(cfg: Optional[RingConfig] = None, ring: Optional[ConsistentHash] = None) -> FastAPI:
    cfg = cfg or RingConfig()
    setup_logging(cfg.debug)
    app = FastAPI(title="Consistent Hash Ring")

    if ring is None:
        ring = ConsistentHash(vnode_count=cfg.vnode_count)
    for address in cfg.members:
        ring.add(address)
    app.state.ring = ring

    @app.on_event("startup")
    async def _startup():
        log.info("Serving ring at %s, members=%s, vnodes=%d", cfg.base_url, ring.members(), ring.vnode_count)

    @app.get("/health")
    def health():
        return {"ok": True, "members": len(ring.members()), "vnodes": len(ring)}

    @app.get("/members")
    def members():
        return {"ok": True, "members": ring.members(), "vnode_count": ring.vnode_count}

    @app.post("/members")
    def add_member(req: MemberReq):
        added = ring.add(req.address)
        if added:
            log.info("Added %s (%d members)", req.address, len(ring.members()))
        return {"ok": True, "address": req.address, "added": added}

    @app.delete("/members/{address:path}")
    def remove_member(address: str):
        removed = ring.remove(address)
        if removed:
            log.info("Removed %s (%d members)", address, len(ring.members()))
        return {"ok": True, "address": address, "removed": removed}

    @app.get("/lookup")
    def lookup(key: str, b64: bool = False):
        try:
            owner = ring.get(_lookup_key(key, b64))
        except NoMembersError:
            raise HTTPException(status_code=503, detail={"error": "no_members"})
        return {"ok": True, "key": key, "address": owner}

    @app.get("/lookup/n")
    def lookup_n(key: str, count: int = 2, b64: bool = False):
        try:
            owners = ring.get_n(_lookup_key(key, b64), count)
        except NotEnoughMembersError as e:
            raise HTTPException(
                status_code=503,
                detail={"error": "not_enough_members", "wanted": e.wanted, "available": e.available},
            )
        return {"ok": True, "key": key, "addresses": owners}

    @app.put("/config/vnodes")
    def set_vnodes(req: VnodeCountReq):
        try:
            ring.set_vnode_count(req.count)
        except NotAvailableOnceMembersAddedError:
            raise HTTPException(status_code=409, detail={"error": "not_available_once_members_added"})
        except InvalidVnodeCountError:
            raise HTTPException(status_code=422, detail={"error": "invalid_vnode_count", "count": req.count})
        log.debug("vnode count set to %d", req.count)
        return {"ok": True, "vnode_count": ring.vnode_count}

    @app.get("/debug/vnodes")
    def debug_vnodes():
        return {
            "vnode_count": ring.vnode_count,
            "vnodes": [{"token": vn.token, "address": vn.address} for vn in ring.vnodes()],
        }

    return app

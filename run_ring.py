import argparse
import uvicorn
from ringhash.api import create_app
from ringhash.config import RingConfig
from ringhash.hashing import DEFAULT_VNODE_COUNT

def main(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--members", default="", help="Comma list of addresses to register, e.g. server1,server2,server3")
    p.add_argument("--vnodes", type=int, default=DEFAULT_VNODE_COUNT, help="Virtual nodes per address")
    p.add_argument("--debug", action="store_true")
    args = p.parse_args(argv)
    if args.vnodes < 1:
        p.error(f"--vnodes must be > 0, got {args.vnodes}")

    members = [x.strip() for x in args.members.split(",") if x.strip()]
    cfg = RingConfig(
        host=args.host,
        port=args.port,
        members=members,
        vnode_count=args.vnodes,
        debug=args.debug,
    )
    app = create_app(cfg)

    uvicorn.run(app, host=cfg.host, port=cfg.port)

if __name__ == "__main__":
    main()

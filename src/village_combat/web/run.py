"""
Launch the combat lab API:

    python -m village_combat.web.run --port 8000
"""
from __future__ import annotations

import argparse

import uvicorn

APP_PATH = "village_combat.web.main:app"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m village_combat.web.run",
        description="Serve the combat lab API (field battles, sieges, loss allocation).",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to listen on (default: %(default)s).")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: %(default)s).")
    parser.add_argument("--reload", action="store_true", help="Restart on source changes.")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="uvicorn log level (default: %(default)s).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if not 0 < args.port < 65536:
        print(f"[lab] Invalid port: {args.port}")
        return 2

    print(f"[lab] Serving on http://{args.host}:{args.port}.")
    uvicorn.run(APP_PATH, host=args.host, port=args.port, reload=args.reload, log_level=args.log_level)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

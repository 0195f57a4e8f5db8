"""
Start the Ticket Desk API under uvicorn.

    python run.py                      # 127.0.0.1:8000
    python run.py --reload             # restart on code changes
    python run.py --no-auto-close      # API only, no idle-ticket sweep
"""
import argparse
import os

import uvicorn


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Ticket Desk API server")
    parser.add_argument("--host", default="127.0.0.1", help="bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=8000, help="bind port (default: %(default)s)")
    parser.add_argument("--reload", action="store_true", help="auto-reload on code changes")
    parser.add_argument(
        "--workers", type=int, default=1,
        help="worker processes, ignored with --reload (default: %(default)s)"
    )
    parser.add_argument(
        "--no-auto-close", action="store_true",
        help="do not start the auto-close scheduler in this process"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.no_auto_close:
        # Read by the settings module when the app is imported
        os.environ["AUTO_CLOSE_ENABLED"] = "false"

    workers = 1 if args.reload else args.workers
    print(f"Ticket Desk on http://{args.host}:{args.port} (workers={workers}, reload={args.reload})")

    uvicorn.run(
        "ticketdesk.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers,
    )


if __name__ == "__main__":
    main()

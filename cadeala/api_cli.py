"""
CLI entrypoint for the FastAPI server.

Usage:
  cadeala-api --host 0.0.0.0 --port 8000
  cadeala-api --backend memory --reload
"""

from __future__ import annotations

import argparse
import os


def main() -> None:
    parser = argparse.ArgumentParser(description="Run Cadeala Rewards API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    parser.add_argument("--backend", choices=["firestore", "memory"], help="Override CADEALA_BACKEND")
    args = parser.parse_args()

    if args.backend:
        # Read by Settings in the (possibly reloaded) server process
        os.environ["CADEALA_BACKEND"] = args.backend

    import uvicorn

    uvicorn.run("cadeala.api.app:create_app", factory=True, host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()

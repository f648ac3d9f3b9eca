"""Run the FastAPI matching server."""

from __future__ import annotations

import argparse

import uvicorn

from src.ui_api.server import app


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the matching API server")
    parser.add_argument("--host", type=str, default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    args = parser.parse_args()

    if args.reload:
        # uvicorn can only reload when given an import string
        uvicorn.run("src.ui_api.server:app", host=args.host, port=args.port, reload=True)
    else:
        uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()

"""Script to launch the resume assistant chat proxy."""

from __future__ import annotations

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the resume assistant chat proxy.")
    parser.add_argument(
        "--host",
        type=str,
        default=os.environ.get("HOST", "127.0.0.1"),
        help="Host to bind the server to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", "8000")),
        help="Port to bind the server to (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development (default: off)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=int(os.environ.get("WORKERS", "1")),
        help="Number of worker processes (default: 1)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML config (default: $RESUME_ASSISTANT_CONFIG or config/default.yaml)",
    )
    args = parser.parse_args()

    if args.config:
        os.environ["RESUME_ASSISTANT_CONFIG"] = args.config

    # Import string + factory so --reload and --workers can re-create the app.
    uvicorn.run(
        "resume_assistant.server:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        log_level="info",
    )


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Launch the practice service with command-line overrides.
"""

from __future__ import annotations

import argparse
import os

import uvicorn


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the Interview Practice Partner service.",
    )
    parser.add_argument("--host", default=None, help="Bind host (default: SERVER_HOST or 0.0.0.0).")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: PORT or 3000).")
    parser.add_argument("--model", default=None, help="Override the generator model.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-call generator timeout in seconds (default: 60).",
    )
    parser.add_argument("--debug", action="store_true", help="Include diagnostics in error bodies.")
    parser.add_argument("--log-level", default="info", help="Uvicorn log level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    if args.host:
        os.environ["SERVER_HOST"] = args.host
    if args.port is not None:
        os.environ["PORT"] = str(args.port)
    if args.model:
        os.environ["GENERATOR_MODEL"] = args.model
    if args.timeout is not None:
        os.environ["GENERATOR_TIMEOUT_SECONDS"] = str(args.timeout)
    if args.debug:
        os.environ["APP_DEBUG"] = "true"

    from practice_server import RUNTIME_CONFIG, app  # Import after env config

    print(
        f"Starting Interview Practice Partner model={RUNTIME_CONFIG.generator.model} "
        f"bind=http://{RUNTIME_CONFIG.host}:{RUNTIME_CONFIG.port} debug={RUNTIME_CONFIG.debug}"
    )
    uvicorn.run(
        app,
        host=RUNTIME_CONFIG.host,
        port=RUNTIME_CONFIG.port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()

"""CLI entrypoint for the HTTP API.

Usage:
    python -m api                                     # no permissions
    python -m api --port 9000 --allow-read=/data -N   # grant read on /data and network

Any argument not understood here is treated as a Deno permission flag and
granted to every execution, replacing SANDBOX_PERMISSIONS.
"""

import argparse
import sys

import uvicorn

from common.config import settings
from common.logging import configure_logging, get_logger

logger = get_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Deno sandbox HTTP API",
        allow_abbrev=False,
    )
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    args, permissions = parser.parse_known_args()

    configure_logging(settings.log_level)
    if permissions:
        settings.sandbox_permissions = permissions
    logger.info(f"Starting API with permissions: {settings.sandbox_permissions or 'none'}")

    try:
        uvicorn.run("api.main:app", host=args.host, port=args.port)
    except Exception as e:
        logger.error(f"Server failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

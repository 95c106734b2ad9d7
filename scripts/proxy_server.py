#!/usr/bin/env python3

"""
Trend Pulse API server - serves ``/rss-proxy`` and ``/generate-tweet``.

Usage
-----
python scripts/proxy_server.py                 # host/port from PULSE_API_HOST / PULSE_API_PORT
python scripts/proxy_server.py --port 4000
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pulse_engine.api import create_app
from pulse_engine.config import Settings

logging.basicConfig(
    level=os.getenv("PULSE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(message)s",
)
LOGGER = logging.getLogger(__name__)


def main() -> None:
    """Entry-point for the proxy / generation API."""
    parser = argparse.ArgumentParser(description="Run the RSS proxy and summary generation API")
    parser.add_argument("--host", default=None, help="Bind address (default: PULSE_API_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: PULSE_API_PORT)")
    args = parser.parse_args()

    settings = Settings.from_env()
    host = args.host or settings.api_host
    port = args.port or settings.api_port

    LOGGER.info("🚀 Proxy server running on %s:%s", host, port)
    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()

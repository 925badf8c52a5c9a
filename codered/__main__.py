#!/usr/bin/env python3
"""
Run the Code Red API

Usage:
    python -m codered
    python -m codered --port 8001 --log-level DEBUG
    DATABASE_URL=postgresql:///codered_db python -m codered
"""

import argparse
import logging

import uvicorn

from .config import get_settings
from .main import create_app


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Code Red mass transfusion tracking API")
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port (default: {settings.port})")
    parser.add_argument("--log-level", default=settings.log_level,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()

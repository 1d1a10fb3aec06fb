#!/usr/bin/env python3
"""
Deal Screening Engine - API Server

Run this script to start the screening API.

Usage:
    python serve.py [--port PORT] [--host HOST] [--reload]

Example:
    python serve.py --port 8080
"""

import argparse

import uvicorn


def main():
    parser = argparse.ArgumentParser(
        description="Deal Screening Engine - API Server"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)"
    )
    parser.add_argument(
        "--host", "-H",
        type=str,
        default="localhost",
        help="Host to bind to (default: localhost)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on source changes (development only)"
    )

    args = parser.parse_args()

    uvicorn.run("web.app:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()

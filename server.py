"""Amadeus MCP server entry point.

Runs over stdio by default; ``--sse`` starts the HTTP server with the SSE
transport and the REST endpoints instead.
"""
import argparse
import dataclasses
import sys
from pathlib import Path

from dotenv import load_dotenv

from core.catalog import CatalogRootError, load_catalog
from core.config import ConfigError, Settings
from core.logging_config import setup_logging

ROOT_DIR = Path(__file__).resolve().parent


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="MCP server exposing the Amadeus tools")
    p.add_argument("--sse", action="store_true", help="Serve MCP over HTTP/SSE instead of stdio")
    p.add_argument("--host", help="Bind address for --sse (default from config.yaml)")
    p.add_argument("--port", type=int, help="Listening port for --sse (default from config.yaml or PORT)")
    p.add_argument("--tools-dir", type=Path, help="Directory to discover tool modules in")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    load_dotenv(ROOT_DIR / ".env")

    logger = setup_logging(stream=sys.stderr)
    logger.info("MCP server bootstrap starting.")

    try:
        settings = Settings.load()
    except (OSError, ConfigError):
        logger.exception("Failed to load configuration")
        return 1

    overrides = {
        key: value
        for key, value in (("host", args.host), ("port", args.port), ("tools_dir", args.tools_dir))
        if value is not None
    }
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    logger.info("Loading MCP tools from %s", settings.tools_dir)
    try:
        catalog = load_catalog(settings.tools_dir)
    except CatalogRootError:
        logger.exception("Failed to load tool catalog")
        return 1

    try:
        if args.sse:
            from transports.http_app import run_http

            run_http(catalog, settings)
        else:
            from transports.stdio import run_stdio

            logger.info("Starting MCP server...")
            run_stdio(catalog, settings)
    except KeyboardInterrupt:
        logger.info("MCP server interrupted.")
    except Exception:
        logger.exception("Unhandled exception running MCP server")
        print("Unhandled exception occurred. See logs/server.log for details.", file=sys.stderr)
        return -1
    return 0


if __name__ == "__main__":
    sys.exit(main())

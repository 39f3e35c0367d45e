"""Command-line entry point: start the Slack MCP server over stdio or SSE."""

import argparse
import logging
import os
import sys
import threading

from .provider import AuthenticationError, new_provider
from .server import BINARY_NAME, build_server, serve_sse

logger = logging.getLogger(__name__)

DEFAULT_SSE_HOST = "127.0.0.1"
DEFAULT_SSE_PORT = 13080

_TRANSPORTS = ("stdio", "sse")


def _is_demo(env):
    if env.get("SLACK_MCP_XOXP_TOKEN", "") == "demo":
        return True
    return env.get("SLACK_MCP_XOXC_TOKEN", "") == "demo" and env.get("SLACK_MCP_XOXD_TOKEN", "") == "demo"


def users_watcher(provider, env=None):
    """Warm the users cache; return False when demo credentials skip it."""
    env = os.environ if env is None else env
    logger.info("Caching users collection...")
    if _is_demo(env):
        logger.info("Demo credentials are set, skip.")
        return False
    provider.refresh_users()
    logger.info("Users cached successfully.")
    return True


def channels_watcher(provider, env=None):
    """Warm the channels cache; return False when demo credentials skip it."""
    env = os.environ if env is None else env
    logger.info("Caching channels collection...")
    if _is_demo(env):
        logger.info("Demo credentials are set, skip.")
        return False
    provider.refresh_channels()
    logger.info("Channels cached successfully.")
    return True


def _run_watcher(watcher, provider):
    try:
        watcher(provider)
    except Exception as exc:
        logger.critical("Error booting provider: %s", exc)
        os._exit(1)


def main(argv=None):
    """Run the server; return the process exit status."""
    parser = argparse.ArgumentParser(prog=BINARY_NAME, description="Slack MCP server.")
    parser.add_argument(
        "-t", "--transport", default="stdio", help="Transport type (stdio or sse)"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, stream=sys.stderr, format="%(asctime)s %(message)s")

    try:
        provider = new_provider()
    except AuthenticationError as exc:
        logger.critical("%s", exc)
        return 1

    if args.transport not in _TRANSPORTS:
        logger.critical("Invalid transport type: %s. Must be 'stdio' or 'sse'", args.transport)
        return 1

    server = build_server(provider)

    for watcher in (users_watcher, channels_watcher):
        threading.Thread(target=_run_watcher, args=(watcher, provider), daemon=True).start()

    if args.transport == "stdio":
        try:
            server.serve_stdio(sys.stdin, sys.stdout)
        except OSError as exc:
            logger.critical("Server error: %s", exc)
            return 1
        return 0

    host = os.environ.get("SLACK_MCP_HOST", "") or DEFAULT_SSE_HOST
    port = os.environ.get("SLACK_MCP_PORT", "") or str(DEFAULT_SSE_PORT)
    try:
        port_number = int(port)
    except ValueError:
        logger.critical("Server error: invalid port %r", port)
        return 1

    sse = serve_sse(server, ":" + port)
    logger.info("SSE server listening on %s:%s", host, port)
    try:
        sse.start(host, port_number)
    except OSError as exc:
        logger.critical("Server error: %s", exc)
        return 1
    return 0
"""
Stream Camera Local Server - command line entry point

Serves the local API by default. With --scan it runs one discovery pass,
prints the stream URL and exits.
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional

from discovery.models import DiscoveryError
from services.stream_server import StreamServer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = 'config/config.yaml'

# Exit codes
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_FOUND = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stream camera local server")
    parser.add_argument("--config", default=os.environ.get('CONFIG_FILE', DEFAULT_CONFIG),
                        help="YAML config file (default: $CONFIG_FILE or config/config.yaml)")
    parser.add_argument("--scan", action="store_true",
                        help="Scan for the camera once, print its stream URL and exit")
    return parser.parse_args(argv)


async def scan_once(server: StreamServer) -> int:
    try:
        stream_url = await server.discover_stream_url()
    except (DiscoveryError, ValueError) as e:
        logger.error(f"Scan failed: {e}")
        return EXIT_FAILED
    if stream_url is None:
        print("No camera found")
        return EXIT_NOT_FOUND
    print(stream_url)
    return EXIT_OK


async def serve(server: StreamServer) -> int:
    """Run the API until it exits on its own or SIGINT/SIGTERM arrives"""
    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except NotImplementedError:
            pass  # Windows event loops

    server_task = asyncio.create_task(server.start())
    stop_task = asyncio.create_task(stop_requested.wait())
    try:
        await asyncio.wait({server_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        if stop_requested.is_set():
            logger.info("Shutdown requested")
    finally:
        stop_task.cancel()
        await server.stop()
        if server._server is None:
            server_task.cancel()  # stopped before uvicorn was created

    try:
        await server_task
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.error(f"Server failed: {e}")
        return EXIT_FAILED
    return EXIT_OK


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger.info(f"Using configuration file: {args.config}")
    try:
        server = StreamServer(config_path=args.config)
    except Exception as e:
        logger.error(f"Cannot load configuration {args.config}: {e}")
        return EXIT_FAILED

    if args.scan:
        return await scan_once(server)
    return await serve(server)


if __name__ == "__main__":
    Path("logs").mkdir(exist_ok=True)
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nServer stopped by user")
        sys.exit(EXIT_OK)

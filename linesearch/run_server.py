#!/usr/bin/env python3
"""
Entry point for running the line search server.

Usage:
    linesearch-server --addresses 127.0.0.1:8080,[::1]:8080 [-v|-vv] [--db db.txt]
"""

import argparse
import logging
import signal
import sys
import threading
import time

from .app import DEFAULT_DB_PATH, create_app
from .indexes.word_index import WordIndex
from .listeners import start_listeners, stop_listeners

LOG_FORMAT = '%(asctime)s [%(levelname)s] [%(name)s] %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(verbose: int):
    """0 -> INFO, 1 -> DEBUG for linesearch, 2+ -> DEBUG everywhere."""
    logging.basicConfig(
        level=logging.DEBUG if verbose >= 2 else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr
    )
    logging.getLogger('linesearch').setLevel(logging.DEBUG if verbose >= 1 else logging.INFO)
    # werkzeug logs every request at INFO
    logging.getLogger('werkzeug').setLevel(logging.DEBUG if verbose >= 2 else logging.WARNING)


def split_addresses(values):
    """Flatten repeated, comma-separated --addresses values."""
    return [addr for value in values for addr in value.split(',') if addr]


def install_shutdown_handlers() -> threading.Event:
    """Route SIGINT and SIGTERM to the returned event."""
    stop = threading.Event()

    def handle_signal(signum, frame):
        logger.info("%s received, shutting down servers.", signal.Signals(signum).name)
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, handle_signal)
    return stop


def wait_for_shutdown(stop: threading.Event):
    # stop is set from a signal handler running on this thread
    while not stop.is_set():
        time.sleep(0.2)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Line search server')
    parser.add_argument('-a', '--addresses', action='append', default=[],
                        help='IP:PORT addresses to listen on (comma-separated)')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Enable verbose logging. Use -vv for more verbose output.')
    parser.add_argument('--db', default=DEFAULT_DB_PATH,
                        help=f'Corpus file to index (default: {DEFAULT_DB_PATH})')

    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    logger.info("Verbose level: %d", args.verbose)

    addresses = split_addresses(args.addresses)
    if not addresses:
        logger.error("No addresses provided. Please specify at least one address "
                     "using --addresses ip:port.")
        return 1

    logger.info("Loading database from %s...", args.db)
    try:
        word_index = WordIndex.build(args.db)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to load %s: %s", args.db, e)
        return 1
    logger.info("Database loaded successfully.")

    stop = install_shutdown_handlers()
    app = create_app(index=word_index)
    listeners = start_listeners(addresses, app)

    if not listeners:
        logger.error("No servers were started successfully.")
        return 1

    logger.info("Servers started. Press Ctrl+C to shut down.")
    try:
        wait_for_shutdown(stop)
    finally:
        stop_listeners(listeners)

    logger.info("Servers stopped.")
    return 0


if __name__ == '__main__':
    sys.exit(main())

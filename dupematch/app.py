#!/usr/bin/env python3
"""
dupematch - HTTP Server
=======================
Serves near-duplicate recognition over HTTP.

Run with: python -m dupematch serve
Or: dupematch-server

Options:
    -q, --quiet         Quiet mode - suppress all output except errors
    -v, --verbose       Verbose mode - debug logs and Flask request logs
    -p, --port          Port to run on (default: 8080)
    -d, --images-dir    Reference image directory (default: ./images)
    --hash-only         Start in hash-only matching mode
    --descriptor        Descriptor strategy: none, gradient, embedding
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from flask import Flask

from .api import api
from .config import DESCRIPTOR_KINDS
from .exceptions import DirectoryUnreadableError
from .orchestrator import MatchingOrchestrator, build_orchestrator
from .user_config import get_user_config


# Logging levels
LOG_QUIET = 0    # No output except errors
LOG_MINIMAL = 1  # Startup info and warnings (default)
LOG_VERBOSE = 2  # Debug output and all Flask request logs

logger = logging.getLogger(__name__)


def setup_logging(log_level: int = LOG_MINIMAL):
    """Configure root logging for the server process."""
    level = {
        LOG_QUIET: logging.ERROR,
        LOG_MINIMAL: logging.INFO,
        LOG_VERBOSE: logging.DEBUG,
    }[log_level]
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    if log_level < LOG_VERBOSE:
        # Suppress werkzeug's per-request logging
        logging.getLogger('werkzeug').setLevel(logging.ERROR)


def create_app(
    orchestrator: MatchingOrchestrator,
    images_dir: Optional[str] = None,
) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        orchestrator: Matching orchestrator serving the routes
        images_dir: Directory where added reference images are saved

    Returns:
        Configured Flask app instance
    """
    config = get_user_config()

    app = Flask(__name__)
    app.config['ORCHESTRATOR'] = orchestrator
    app.config['IMAGES_DIR'] = images_dir or config.images_dir
    app.config['DEFAULT_THRESHOLD'] = config.default_threshold
    app.config['MAX_UPLOAD_BYTES'] = config.max_upload_bytes
    # Two uploads plus form fields for /compare
    app.config['MAX_CONTENT_LENGTH'] = 2 * config.max_upload_bytes + 1024 * 1024

    app.register_blueprint(api)
    return app


def main():
    """Main entry point for the HTTP server."""
    config = get_user_config()

    parser = argparse.ArgumentParser(
        description='dupematch - near-duplicate image recognition server',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Quiet mode - suppress all output except errors'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose mode - show debug and Flask request logs'
    )
    parser.add_argument(
        '-p', '--port',
        type=int,
        default=config.port,
        help=f'Port to run the server on (default: {config.port})'
    )
    parser.add_argument(
        '-d', '--images-dir',
        default=config.images_dir,
        help=f'Reference image directory (default: {config.images_dir})'
    )
    parser.add_argument(
        '--descriptor',
        choices=DESCRIPTOR_KINDS,
        default=config.descriptor,
        help=f'Descriptor strategy (default: {config.descriptor})'
    )
    parser.add_argument(
        '--hash-only',
        action='store_true',
        help='Start in hash-only matching mode'
    )

    args = parser.parse_args()

    if args.quiet:
        log_level = LOG_QUIET
    elif args.verbose:
        log_level = LOG_VERBOSE
    else:
        log_level = LOG_MINIMAL
    setup_logging(log_level)

    images_dir = Path(args.images_dir)
    if not images_dir.exists():
        images_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created images directory: {images_dir}")

    orchestrator = build_orchestrator(
        config,
        descriptor=args.descriptor,
        hybrid=False if args.hash_only else None,
    )
    try:
        orchestrator.index.bulk_load(images_dir, show_progress=log_level >= LOG_MINIMAL)
    except DirectoryUnreadableError as e:
        logger.error(f"Failed to load images: {e}")
        sys.exit(1)

    app = create_app(orchestrator, str(images_dir))

    logger.info(f"Server running at http://0.0.0.0:{args.port}")
    try:
        app.run(
            host='0.0.0.0',
            port=args.port,
            debug=False,
            threaded=True,
            use_reloader=False
        )
    except KeyboardInterrupt:
        logger.info("Server stopped")


if __name__ == '__main__':
    main()

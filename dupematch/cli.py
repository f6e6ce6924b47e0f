#!/usr/bin/env python3
"""
dupematch - Command Line Interface
==================================
Load a reference directory and check query images against it.

Usage:
    dupematch-cli ./references photo1.jpg photo2.png
    dupematch-cli ./references ./queries/*.jpg --threshold 90 --hash-only
    dupematch-cli ./references query.jpg --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import DESCRIPTOR_KINDS
from .exceptions import DirectoryUnreadableError, ImageLoadError
from .features import load_image
from .orchestrator import MatchingOrchestrator, build_orchestrator
from .user_config import get_user_config


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    config = get_user_config()

    parser = argparse.ArgumentParser(
        description='Check images against a directory of reference images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ./references photo.jpg
      Report whether photo.jpg is a near-duplicate of any reference

  %(prog)s ./references a.jpg b.png --threshold 95 --hash-only
      Strict fingerprint-only matching

  %(prog)s ./references a.jpg --descriptor none --json
      Fingerprint index only, machine-readable output
        """
    )
    parser.add_argument('reference_dir', type=Path, help='Directory of reference images')
    parser.add_argument('queries', type=Path, nargs='+', help='Images to check')
    parser.add_argument(
        '-t', '--threshold',
        type=float,
        default=config.default_threshold,
        help=f'Similarity percentage required for a match (0-100). Default: {config.default_threshold}'
    )
    parser.add_argument(
        '--hash-only',
        action='store_true',
        help='Match by fingerprint only (never compute descriptors for queries)'
    )
    parser.add_argument(
        '--descriptor',
        choices=DESCRIPTOR_KINDS,
        default=config.descriptor,
        help=f'Descriptor strategy. Default: {config.descriptor}'
    )
    parser.add_argument(
        '-w', '--workers',
        type=int,
        default=config.default_workers,
        help=f'Parallel workers for loading references. Default: {config.default_workers}'
    )
    parser.add_argument('--json', action='store_true', help='Print results as JSON')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    return parser


def check_queries(
    orchestrator: MatchingOrchestrator,
    queries: list[Path],
    threshold: float,
    logger: Optional[logging.Logger] = None,
) -> list[dict]:
    """
    Recognize each query file.

    Returns:
        One dict per query: the MatchResult fields plus 'query', or
        'query' and 'error' for files that could not be decoded
    """
    results = []
    for query in queries:
        try:
            image = load_image(query)
        except ImageLoadError as e:
            if logger:
                logger.warning(str(e))
            results.append({'query': str(query), 'error': str(e)})
            continue
        result = orchestrator.recognize(image, threshold)
        results.append({'query': str(query), **result.to_dict()})
    return results


def print_results(results: list[dict]):
    """Print a human-readable report."""
    for entry in results:
        if 'error' in entry:
            print(f"  ✗ {entry['query']}: {entry['error']}")
        elif entry['matched']:
            print(f"  ✓ {entry['query']} -> {entry['filename']} "
                  f"({entry['score']:.1f}%, {entry['method']})")
        else:
            best = f", closest: {entry['filename']}" if entry['filename'] else ""
            print(f"  - {entry['query']}: no match ({entry['score']:.1f}%{best})")

    matched = sum(1 for entry in results if entry.get('matched'))
    print(f"\n  {matched} of {len(results)} images matched")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = create_parser().parse_args(argv)
    logger = setup_logging(args.verbose)

    orchestrator = build_orchestrator(
        descriptor=args.descriptor,
        hybrid=False if args.hash_only else None,
        workers=args.workers,
    )

    try:
        orchestrator.index.bulk_load(args.reference_dir, show_progress=not args.json)
    except DirectoryUnreadableError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    results = check_queries(orchestrator, args.queries, args.threshold, logger)

    if args.json:
        print(json.dumps(results, indent=2))
    else:
        print_results(results)
    return 0


if __name__ == '__main__':
    sys.exit(main())

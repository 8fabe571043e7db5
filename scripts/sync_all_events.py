#!/usr/bin/env python3
"""
Gather events from every source, then evaluate the queue

Usage:
    python scripts/sync_all_events.py                    # gather + evaluate
    python scripts/sync_all_events.py --skip-evaluate    # gather only
    python scripts/sync_all_events.py --skip-gather      # evaluate only
    python scripts/sync_all_events.py --dry-run          # gather and print, write nothing
    python scripts/sync_all_events.py --only luma --only meetup
"""

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agents.orchestrator import PipelineOrchestrator
from connectors.registry import available_sources, build_connectors
from config import settings
from utils.errors import ConfigurationError
import logging

logger = logging.getLogger(__name__)


def print_summary(result: dict):
    print("\n" + "=" * 60)
    print("SYNC SUMMARY")
    print("=" * 60)

    gather_report = result.get("gather")
    if gather_report:
        for report in gather_report.connectors:
            if report.failed:
                print(f"✗ {report.source:<12} FAILED: {report.error_message}")
            else:
                print(
                    f"✓ {report.source:<12} fetched {report.fetched}, kept {report.kept}, "
                    f"pre-filtered {report.pre_filtered}, new {report.inserted}, skipped {report.skipped}"
                )
        print(f"New candidates: {gather_report.inserted}")

    batch_report = result.get("evaluate")
    if batch_report:
        print(f"Evaluation: {batch_report.summary()}")

    print(f"Processing time: {result['elapsed_seconds']:.1f}s")
    print("=" * 60 + "\n")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Gather AI safety events from all sources and evaluate them',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--skip-gather', action='store_true', help='Only evaluate the pending queue')
    parser.add_argument('--skip-evaluate', action='store_true', help='Only gather new candidates')
    parser.add_argument('--dry-run', action='store_true', help='Gather and print events, write nothing')
    parser.add_argument('--only', action='append', choices=available_sources(),
                        help='Restrict gathering to a source (repeatable)')
    parser.add_argument('--force', action='store_true',
                        help='Re-evaluate evaluated and rejected candidates too')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not args.dry_run:
        try:
            settings.require_credentials()
        except ConfigurationError as e:
            print(f"\n❌ {e}\n")
            return 1

    print(f"\n{'='*60}")
    print(f"Syncing events{' (dry run)' if args.dry_run else ''}")
    print(f"{'='*60}\n")

    orchestrator = PipelineOrchestrator(connectors=build_connectors(only=args.only))
    result = orchestrator.run(
        skip_gather=args.skip_gather,
        skip_evaluate=args.skip_evaluate,
        dry_run=args.dry_run,
        force=args.force,
    )

    print_summary(result)
    return 0


if __name__ == '__main__':
    sys.exit(main())

#!/usr/bin/env python3
"""
Evaluate events with the AI evaluator

Usage:
    # Evaluate (or re-evaluate) an event page
    python scripts/evaluate_event.py --url https://lu.ma/abc123

    # Evaluate an event known only by its title/description
    python scripts/evaluate_event.py --title "AI Safety Unconference" --description "..." --date 2026-11-02

    # Process all pending candidates
    python scripts/evaluate_event.py --process-queue

    # Re-evaluate everything that is not promoted
    python scripts/evaluate_event.py --process-queue --force
"""

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agents.evaluator import EventEvaluator
from config import settings
from utils.errors import ConfigurationError, PersistenceError
import logging

logger = logging.getLogger(__name__)


def print_outcome(candidate_id, outcome):
    print("\n" + "=" * 60)
    print("RESULT")
    print("=" * 60)
    print(f"Candidate: {candidate_id or '-'}")
    print(f"Outcome:   {outcome.value}")
    print("=" * 60 + "\n")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Evaluate AI safety event candidates',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--url', help='Event page URL to evaluate')
    parser.add_argument('--title', help='Event title (when there is no URL)')
    parser.add_argument('--description', help='Event description, used with --title')
    parser.add_argument('--date', help='Event date (YYYY-MM-DD), used with --title')
    parser.add_argument('--process-queue', action='store_true', help='Evaluate all pending candidates')
    parser.add_argument('--force', action='store_true',
                        help='With --process-queue, also re-evaluate evaluated and rejected candidates')
    args = parser.parse_args(argv)

    if not (args.url or args.title or args.process_queue):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        settings.require_credentials()
    except ConfigurationError as e:
        print(f"\n❌ {e}\n")
        return 1

    try:
        return run(EventEvaluator(), args)
    except PersistenceError as e:
        print(f"\n❌ Database error: {e}\n")
        return 1


def run(evaluator, args):
    if args.process_queue:
        print(f"\n{'='*60}")
        print(f"Processing candidate queue{' (force)' if args.force else ''}")
        print(f"{'='*60}\n")
        report = evaluator.process_queue(force=args.force)
        print("\n" + "=" * 60)
        print(f"Total candidates:  {report.total}")
        print(f"Pre-filtered:      {report.pre_filtered}")
        print(f"Promoted:          {report.promoted}")
        print(f"Rejected:          {report.rejected}")
        print(f"Needs review:      {report.evaluated}")
        print(f"Skipped:           {report.skipped}")
        print(f"Errors:            {report.errors}")
        print("=" * 60 + "\n")
        return 0

    if args.url:
        print(f"\n{'='*60}")
        print(f"Evaluating URL: {args.url}")
        print(f"{'='*60}\n")
        candidate_id, outcome = evaluator.evaluate_url(args.url)
    else:
        print(f"\n{'='*60}")
        print(f"Evaluating: {args.title}")
        print(f"{'='*60}\n")
        candidate_id, outcome = evaluator.evaluate_description(args.title, args.description, args.date)

    print_outcome(candidate_id, outcome)
    return 0


if __name__ == '__main__':
    sys.exit(main())

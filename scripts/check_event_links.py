#!/usr/bin/env python3
"""
Check that every listed event URL still resolves

Usage:
    python scripts/check_event_links.py              # check and write url_status
    python scripts/check_event_links.py --dry-run    # check, write nothing
"""

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.link_checker import LinkChecker
from config import settings
from utils.errors import ConfigurationError
import logging

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Check listed event links')
    parser.add_argument('--dry-run', action='store_true', help='Preview without writing')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        settings.require_credentials("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY")
    except ConfigurationError as e:
        print(f"\n❌ {e}\n")
        return 1

    print(f"\n{'='*60}")
    print(f"Checking event links{' (dry run)' if args.dry_run else ''}")
    print(f"{'='*60}\n")

    counts = LinkChecker().check_event_resources(dry_run=args.dry_run)

    print("\n" + "=" * 60)
    print(f"Checked:    {counts['checked']}")
    print(f"Reachable:  {counts['reachable']}")
    print(f"Redirected: {counts['redirect']}")
    print(f"Dead:       {counts['dead']}")
    print("=" * 60 + "\n")
    return 0


if __name__ == '__main__':
    sys.exit(main())

#!/usr/bin/env python3
"""
Seed the configured database with the demo team, prospects and templates.

Safe to run more than once: an owner that already has a team is skipped.
"""

import argparse
import os
import sys
from pathlib import Path

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from outreach_crm.core.bootstrap import seed_demo_data
from outreach_crm.core.config import get_db_path, get_demo_user_id
from outreach_crm.core.db import init_db
from outreach_crm.core.errors import CRMError


def main():
    parser = argparse.ArgumentParser(
        description="Seed demo data for the outreach CRM",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Seed for DEMO_USER_ID (default demo-user)
  %(prog)s --owner alice            # Seed a team owned by 'alice'
  %(prog)s --db ./data/demo.db      # Seed a specific database file

Environment variables:
- DB_PATH=./data/crm.db (database file)
- DEMO_USER_ID=demo-user (default owner)
        """
    )

    parser.add_argument(
        "--owner", "-o",
        default=None,
        help="Owner user id for the demo team (default: DEMO_USER_ID)"
    )

    parser.add_argument(
        "--db",
        default=None,
        help="Database path (overrides DB_PATH)"
    )

    args = parser.parse_args()

    if args.db:
        os.environ["DB_PATH"] = args.db

    owner_id = args.owner or get_demo_user_id()

    try:
        init_db()
        created = seed_demo_data(owner_id)
    except CRMError as e:
        print(f"ERROR: Seeding failed: {e.message}")
        sys.exit(1)

    if created:
        print(f"Demo data created for '{owner_id}' in {get_db_path()}")
    else:
        print(f"'{owner_id}' already has a team in {get_db_path()}; nothing to do")


if __name__ == "__main__":
    main()

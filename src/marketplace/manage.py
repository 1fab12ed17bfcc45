"""Marketplace management CLI.

Usage:
    python -m marketplace.manage setup-db               # Create all tables
    python -m marketplace.manage drop-db                # Drop all tables
    python -m marketplace.manage repair-sagas           # Re-apply failed saga steps
    python -m marketplace.manage dispatch-notifications # Deliver pending/failed notifications
"""

import argparse
import sys


def setup_database():
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Creating marketplace database schema...")
    tables = setup_db(marketplace)
    print(f"Created {len(tables)} table(s)." if tables else "No SQL provider configured; nothing to create.")


def drop_database():
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Dropping marketplace database schema...")
    tables = drop_db(marketplace)
    print(f"Dropped {len(tables)} table(s).")


def repair_sagas():
    """Re-apply the failed steps of every saga left needing repair."""
    from marketplace.domain import marketplace
    from marketplace.saga.repair import repair_pending_sagas

    marketplace.init()
    with marketplace.domain_context():
        result = repair_pending_sagas()

    print(f"Repaired {len(result['repaired'])} saga(s).")
    for saga_id in result["failed"]:
        print(f"  still needs repair: {saga_id}")
    return 1 if result["failed"] else 0


def dispatch_notifications(retry: bool):
    """Deliver outbox notifications the relay did not get to."""
    from marketplace.domain import marketplace
    from marketplace.notifications.relay import dispatch_pending, retry_failed

    marketplace.init()
    with marketplace.domain_context():
        retried = retry_failed() if retry else 0
        attempted = dispatch_pending()

    if retry:
        print(f"Re-queued {retried} failed notification(s).")
    print(f"Dispatched {attempted} pending notification(s).")


def main():
    from marketplace.utils.logging import configure_logging

    configure_logging()

    parser = argparse.ArgumentParser(description="Marketplace management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("repair-sagas", help="Re-apply failed steps of sagas needing repair")
    dispatch_parser = subparsers.add_parser("dispatch-notifications", help="Deliver pending notifications")
    dispatch_parser.add_argument(
        "--retry-failed",
        action="store_true",
        help="Also re-queue FAILED notifications with attempts left",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "repair-sagas":
        sys.exit(repair_sagas())
    elif args.command == "dispatch-notifications":
        dispatch_notifications(args.retry_failed)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

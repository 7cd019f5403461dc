"""
Delete expired refresh tokens and OTP rows whose rate-limit history has lapsed.

Run from the repo root (e.g. from cron):
  python scripts/purge_expired.py
  python scripts/purge_expired.py --dry-run
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure the repo root is on path so "ideas_api" resolves
_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from ideas_api.core import SystemClock, get_settings
from ideas_api.core.logging import configure_logging
from ideas_api.db.session import async_session
from ideas_api.services import purge_expired

logger = logging.getLogger(__name__)


async def run_purge(dry_run: bool) -> None:
    settings = get_settings()
    async with async_session() as db:
        result = await purge_expired(db, SystemClock().now(), settings, dry_run=dry_run)
    print(f"otps={result.otps} refresh_tokens={result.refresh_tokens}{' (dry run)' if dry_run else ''}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Purge expired auth state (OTP rows, refresh tokens).")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count what would be deleted and roll back.",
    )
    args = parser.parse_args()
    configure_logging(get_settings().log_level)
    asyncio.run(run_purge(args.dry_run))


if __name__ == "__main__":
    main()

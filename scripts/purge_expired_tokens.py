#!/usr/bin/env python
"""
Token Cleanup Job

Deletes password-reset ledger rows older than the reset lifetime and
revoked-token rows whose tokens have expired anyway.

Usage:
    python scripts/purge_expired_tokens.py [--dry-run]
"""
import sys
from pathlib import Path
from datetime import datetime
from argparse import ArgumentParser

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from money_tracker.auth import purge_revoked_tokens
from money_tracker.crud.crud_password_reset import purge_expired_resets, reset_token_lifetime
from money_tracker.db.core import get_db, PasswordResetDB, RevokedTokenDB
from money_tracker.logging_config import setup_logging


def count_expired(db, now: datetime):
    resets = db.query(PasswordResetDB).filter(PasswordResetDB.created_at < now - reset_token_lifetime()).count()
    revoked = db.query(RevokedTokenDB).filter(RevokedTokenDB.expires_at < now).count()
    return resets, revoked


def main():
    parser = ArgumentParser(description='Delete expired reset tokens and revoked session tokens')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Only report how many rows would be deleted'
    )
    args = parser.parse_args()

    setup_logging()
    now = datetime.utcnow()
    db = next(get_db())

    try:
        if args.dry_run:
            resets, revoked = count_expired(db, now)
            print(f"Would delete {resets} reset token(s) and {revoked} revoked token(s)")
            return

        resets = purge_expired_resets(db, now=now)
        revoked = purge_revoked_tokens(db, now=now)
        print(f"Deleted {resets} reset token(s) and {revoked} revoked token(s)")
    finally:
        db.close()


if __name__ == "__main__":
    main()

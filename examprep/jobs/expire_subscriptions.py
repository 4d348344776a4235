"""
Subscription expiry job.

Access decisions compare end_date at read time, so an expired subscription is
already denied before this job runs. The job keeps the stored is_active flag in
line with that so reporting and admin views agree with access checks.

Run via cron:
    python -m examprep.jobs.expire_subscriptions [--dry-run]
"""

import argparse
import logging
import sys
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from examprep.models.subscription import Subscription
from examprep.utils.time import as_utc, utcnow

logger = logging.getLogger(__name__)


class SubscriptionExpiryJob:
    """Flips is_active off for subscriptions whose end_date has passed."""

    def __init__(self, db_session: Session, dry_run: bool = False):
        self.db_session = db_session
        self.dry_run = dry_run

    def run(self, now: Optional[datetime] = None) -> dict:
        """
        Execute the job.

        Returns:
            Summary with the number of subscriptions checked and expired
        """
        compare_at = as_utc(now) if now else utcnow()
        logger.info("Starting subscription expiry job", extra={"dry_run": self.dry_run})

        results = {
            "started_at": utcnow().isoformat(),
            "subscriptions_checked": 0,
            "subscriptions_expired": 0,
            "dry_run": self.dry_run,
            "errors": [],
        }

        candidates = self.db_session.query(Subscription).filter(
            Subscription.is_active.is_(True),
            Subscription.end_date.isnot(None),
        ).all()
        results["subscriptions_checked"] = len(candidates)

        expired = [sub for sub in candidates if sub.is_expired(compare_at)]
        for subscription in expired:
            logger.info(
                "Subscription expired",
                extra={
                    "subscription_id": subscription.id,
                    "user_id": subscription.user_id,
                    "organization_id": subscription.organization_id,
                    "end_date": as_utc(subscription.end_date).isoformat(),
                }
            )
            if not self.dry_run:
                subscription.is_active = False

        results["subscriptions_expired"] = len(expired)

        if self.dry_run:
            self.db_session.rollback()
        else:
            try:
                self.db_session.commit()
            except Exception as e:
                self.db_session.rollback()
                logger.error("Subscription expiry job failed", extra={"error": str(e)})
                results["errors"].append(str(e))

        results["completed_at"] = utcnow().isoformat()
        logger.info("Subscription expiry job completed", extra=results)
        return results


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Deactivate subscriptions past their end date")
    parser.add_argument("--dry-run", action="store_true", help="Report without writing")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    from examprep.database.session import get_session_factory

    session = get_session_factory()()
    try:
        results = SubscriptionExpiryJob(session, dry_run=args.dry_run).run()
    finally:
        session.close()

    return 1 if results["errors"] else 0


if __name__ == "__main__":
    sys.exit(main())

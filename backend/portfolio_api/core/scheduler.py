"""
Background scheduler for periodic tasks.

User and profile records are written independently (there is no
multi-record transaction), so the pair can drift apart when the second
write fails. This module runs a repair job on a schedule:
- Create a default profile for every user that has had none for longer
  than a grace period
- Delete profiles whose user no longer exists
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import sessionmaker
from portfolio_api.core.context import AppContext
from portfolio_api.models.profile import Profile
from portfolio_api.models.user import User
import logging

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive UTC timestamps
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def reconcile_profiles_job(
    session_factory: sessionmaker,
    grace_minutes: int = 10,
    now: Optional[datetime] = None
) -> dict:
    """
    Background job that restores the one-profile-per-user expectation.

    Users registered less than grace_minutes ago are skipped, since their
    registration request may not have written its profile yet. Returns
    counts of created and deleted profiles. Duplicate profiles for one
    user are left alone.
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(minutes=grace_minutes)
    db = session_factory()
    created = 0
    deleted = 0
    try:
        users = db.query(User.id, User.created_at).all()
        user_ids = {user_id for (user_id, _) in users}
        settled_user_ids = {
            user_id for (user_id, created_at) in users
            if created_at is not None and _as_utc(created_at) <= cutoff
        }
        profiles = db.query(Profile).all()
        profiled_user_ids = {profile.user_id for profile in profiles}

        for user_id in sorted(settled_user_ids - profiled_user_ids):
            db.add(Profile(user_id=user_id))
            created += 1
            logger.info(f"Created missing profile for user {user_id}")

        for profile in profiles:
            if profile.user_id not in user_ids:
                db.delete(profile)
                deleted += 1
                logger.info(f"Deleted orphaned profile {profile.id} (user {profile.user_id})")

        db.commit()

        if created or deleted:
            logger.info(f"Profile sweep completed: created {created}, deleted {deleted}")
        else:
            logger.info("Profile sweep completed: nothing to repair")

    except Exception as e:
        logger.error(f"Error in reconcile_profiles_job: {str(e)}")
        db.rollback()
        created = deleted = 0
    finally:
        db.close()

    return {"created": created, "deleted": deleted}


def start_scheduler(context: AppContext) -> BackgroundScheduler:
    """
    Start a background scheduler running the profile sweep.

    Called from the FastAPI lifespan on startup.
    """
    hours = context.settings.PROFILE_SWEEP_INTERVAL_HOURS
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        reconcile_profiles_job,
        trigger=IntervalTrigger(hours=hours),
        args=[context.session_factory, context.settings.PROFILE_SWEEP_GRACE_MINUTES],
        id="reconcile_profiles",
        name="Reconcile users and profiles",
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"Background scheduler started. Profile sweep scheduled to run every {hours} hours.")
    return scheduler


def stop_scheduler(scheduler: BackgroundScheduler) -> None:
    """Stop the background scheduler on shutdown"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Background scheduler stopped.")

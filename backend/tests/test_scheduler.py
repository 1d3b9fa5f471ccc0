from datetime import datetime, timedelta, timezone
from portfolio_api.core.scheduler import reconcile_profiles_job, start_scheduler, stop_scheduler
from portfolio_api.models.profile import Profile
from portfolio_api.models.user import User
from portfolio_api.services.profile_service import profile_service
from portfolio_api.services.user_service import user_service

SETTLED = datetime(2020, 1, 1)


def _user(db, email, created_at=SETTLED):
    user = User(name="Someone", email=email, hashed_password="x", created_at=created_at)
    db.add(user)
    db.commit()
    return user


def test_sweep_creates_missing_profiles(context, db):
    user = _user(db, "a@x.com")

    result = reconcile_profiles_job(context.session_factory)

    assert result == {"created": 1, "deleted": 0}
    db.expire_all()
    profile = db.query(Profile).filter(Profile.user_id == user.id).one()
    assert profile.age == 18


def test_sweep_skips_users_inside_grace_period(context, db):
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    _user(db, "a@x.com", created_at=datetime(2024, 5, 1, 11, 55))
    settled = _user(db, "b@x.com", created_at=datetime(2024, 5, 1, 11, 45))

    result = reconcile_profiles_job(context.session_factory, grace_minutes=10, now=now)

    assert result == {"created": 1, "deleted": 0}
    db.expire_all()
    assert [profile.user_id for profile in db.query(Profile).all()] == [settled.id]


def test_sweep_during_registration_leaves_one_profile(context, db):
    user = user_service.create_user(db, context.password_hasher, "A", "a@x.com", "p")

    # The sweep fires between the user write and the profile write
    assert reconcile_profiles_job(context.session_factory) == {"created": 0, "deleted": 0}
    profile_service.create_for_user(db, user.id)

    db.expire_all()
    assert db.query(Profile).filter(Profile.user_id == user.id).count() == 1


def test_sweep_deletes_orphaned_profiles(context, db):
    user = _user(db, "a@x.com")
    db.add(Profile(user_id=user.id))
    db.add(Profile(user_id="gone"))
    db.commit()

    result = reconcile_profiles_job(context.session_factory)

    assert result == {"created": 0, "deleted": 1}
    db.expire_all()
    assert [profile.user_id for profile in db.query(Profile).all()] == [user.id]


def test_sweep_with_consistent_data_changes_nothing(context, db):
    user = _user(db, "a@x.com")
    db.add(Profile(user_id=user.id))
    db.commit()

    assert reconcile_profiles_job(context.session_factory) == {"created": 0, "deleted": 0}


def test_duplicate_profiles_resolve_to_the_same_row(context, db):
    user = _user(db, "a@x.com")
    db.add(Profile(id="bbbb", user_id=user.id))
    db.add(Profile(id="aaaa", user_id=user.id))
    db.commit()

    updated = profile_service.update_partial(db, user.id, name="Ada")

    assert updated.id == "aaaa"
    assert profile_service.get_by_user_id(db, user.id).name == "Ada"


def test_scheduler_registers_sweep_job(context):
    scheduler = start_scheduler(context)
    try:
        job = scheduler.get_job("reconcile_profiles")
        assert job is not None
        assert job.args == (context.session_factory, context.settings.PROFILE_SWEEP_GRACE_MINUTES)
    finally:
        stop_scheduler(scheduler)
    assert not scheduler.running

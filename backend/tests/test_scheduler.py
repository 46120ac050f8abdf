from nightout.jobs.scheduler import (
    AGGREGATION_JOB_ID,
    SESSION_CLEANUP_JOB_ID,
    build_scheduler,
    jobs_enabled,
)


def test_jobs_disabled_under_tests():
    assert jobs_enabled() is False


def test_build_scheduler_registers_jobs():
    scheduler = build_scheduler()
    assert sorted(scheduler.job_ids()) == sorted([AGGREGATION_JOB_ID, SESSION_CLEANUP_JOB_ID])
    assert not scheduler.running

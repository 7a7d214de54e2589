import logging

logger = logging.getLogger(__name__)


def register_jobs(scheduler, settings):
    """Register scheduled jobs. Called during startup."""
    from app.scheduler.tasks import run_reconciliation

    scheduler.add_job(
        run_reconciliation,
        "interval",
        minutes=settings.RECONCILE_INTERVAL_MINUTES,
        id="reconcile_stale_research",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info(
        "Jobs registered: reconciliation every %sm (stale after %sm)",
        settings.RECONCILE_INTERVAL_MINUTES,
        settings.STALE_RUNNING_MINUTES,
    )

"""Scheduler configuration using SQLAlchemy job store."""

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from .config.logging import get_logger
from .config.settings import get_settings

logger = get_logger(__name__)

PRICE_REFRESH_JOB_ID = "price_refresh"


def create_scheduler() -> BackgroundScheduler:
    """
    Create and configure a BackgroundScheduler with SQLAlchemy job store.

    Returns:
        Configured BackgroundScheduler instance
    """
    settings = get_settings()

    # Job store shares the application database
    jobstores = {
        "default": SQLAlchemyJobStore(
            url=settings.get_database_url(), tablename="apscheduler_jobs"
        )
    }

    executors = {
        "default": ThreadPoolExecutor(max_workers=settings.scheduler_max_workers)
    }

    job_defaults = {
        "coalesce": True,  # One refresh covers any missed ticks
        "max_instances": 1,  # Refreshes never overlap
        "misfire_grace_time": 30,
    }

    scheduler = BackgroundScheduler(
        jobstores=jobstores,
        executors=executors,
        job_defaults=job_defaults,
        timezone="UTC",
    )

    scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
    scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)

    return scheduler


def job_executed_listener(event):
    """Log successful job executions."""
    logger.debug(
        "Job executed",
        job_id=event.job_id,
        scheduled_run_time=str(event.scheduled_run_time),
    )


def job_error_listener(event):
    """Log job execution errors."""
    logger.error(
        "Job crashed",
        job_id=event.job_id,
        error=str(event.exception),
        traceback=event.traceback,
    )


def get_global_scheduler() -> BackgroundScheduler:
    """
    Get or create the global scheduler instance.

    Returns:
        Global BackgroundScheduler instance
    """
    if not hasattr(get_global_scheduler, "_scheduler"):
        get_global_scheduler._scheduler = create_scheduler()

    return get_global_scheduler._scheduler


def start_scheduler():
    """Start the global scheduler."""
    scheduler = get_global_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started with SQLAlchemy job store")


def shutdown_scheduler():
    """Shutdown the global scheduler."""
    scheduler = get_global_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler shutdown complete")


def add_price_refresh_job(interval_seconds: int = 60):
    """
    Add the market price refresh job to the scheduler.

    Args:
        interval_seconds: How often to poll the price source (default: 60 seconds)
    """
    scheduler = get_global_scheduler()

    try:
        scheduler.remove_job(PRICE_REFRESH_JOB_ID)
    except JobLookupError:
        pass  # Job doesn't exist yet

    # Module reference so the persistent job store can serialize it
    scheduler.add_job(
        func="cryptofolio.core.price_refresh:run_price_refresh_sync",
        trigger="interval",
        seconds=interval_seconds,
        id=PRICE_REFRESH_JOB_ID,
        name="Market Price Refresh",
        replace_existing=True,
    )

    logger.info("Added price refresh job", interval_seconds=interval_seconds)


def list_scheduled_jobs():
    """List all currently scheduled jobs."""
    scheduler = get_global_scheduler()
    jobs = scheduler.get_jobs()

    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": str(job.next_run_time) if job.next_run_time else None,
        }
        for job in jobs
    ]

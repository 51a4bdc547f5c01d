"""Celery application configuration for the tracking engine.

Provides:
- Celery app instance with Redis broker
- Task routing configuration
- Beat schedule for the periodic fleet refresh
- Worker initialization with its own tracking services
"""

import asyncio
import logging
from typing import Optional

from celery import Celery
from celery.signals import worker_process_init, worker_process_shutdown
from kombu import Exchange, Queue

from vesseltrack.config import Settings, get_settings
from vesseltrack.services import TrackingServices, build_services

logger = logging.getLogger(__name__)
settings = get_settings()

# Per-process state; each worker process owns one loop and one service set
_worker_loop: Optional[asyncio.AbstractEventLoop] = None
_worker_services: Optional[TrackingServices] = None


def get_worker_loop() -> asyncio.AbstractEventLoop:
    """Get or create the worker's event loop."""
    global _worker_loop
    if _worker_loop is None or _worker_loop.is_closed():
        _worker_loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_worker_loop)
    return _worker_loop


def run_async(coro):
    """Run an async coroutine in the worker's event loop.

    All tasks of a process share the loop so connection pools created at
    worker start stay usable.
    """
    loop = get_worker_loop()
    return loop.run_until_complete(coro)


def create_celery_app(app_settings: Optional[Settings] = None) -> Celery:
    """Create and configure Celery application.

    Args:
        app_settings: Settings to read broker URLs and the refresh interval from

    Returns:
        Configured Celery app instance
    """
    app_settings = app_settings or settings
    # A refresh run must finish before the next one is scheduled
    hard_limit = max(60, int(app_settings.refresh_interval_seconds))

    app = Celery(
        "vesseltrack",
        broker=app_settings.celery_broker_url,
        backend=app_settings.celery_result_backend,
        include=[
            "vesseltrack.tasks.position_refresh",
        ],
    )

    app.conf.update(
        # Serialization
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",

        # Timezone
        timezone="UTC",
        enable_utc=True,

        # Task execution
        task_track_started=True,
        task_time_limit=hard_limit,
        task_soft_time_limit=int(hard_limit * 0.8),
        task_acks_late=True,
        task_reject_on_worker_lost=True,

        # Worker configuration
        worker_prefetch_multiplier=1,

        # Result backend
        result_expires=3600,

        # Task routing
        task_routes={
            "positions.*": {"queue": "positions"},
        },
        task_queues=(
            Queue("default", Exchange("default"), routing_key="default"),
            Queue("positions", Exchange("positions"), routing_key="positions"),
        ),
        task_default_queue="default",
        task_default_exchange="default",
        task_default_routing_key="default",
    )

    app.conf.beat_schedule = {
        "positions-refresh-all-fleets": {
            "task": "positions.refresh_all_fleets",
            "schedule": app_settings.refresh_interval_seconds,
            "args": (),
            "options": {"queue": "positions"},
        },
    }

    return app


celery_app = create_celery_app()


@worker_process_init.connect
def init_worker_process(**kwargs):
    """Build and start tracking services when a worker process starts."""
    global _worker_services

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Initializing Celery worker process...")

    services = build_services(settings)
    try:
        run_async(services.start())
    except Exception as e:
        logger.error(f"Failed to initialize worker process: {e}")
        _worker_services = None
        return

    _worker_services = services
    logger.info("Celery worker process initialized successfully")


@worker_process_shutdown.connect
def shutdown_worker_process(**kwargs):
    """Close tracking services and the loop when a worker process exits."""
    global _worker_loop, _worker_services

    logger.info("Shutting down Celery worker process...")

    if _worker_loop and not _worker_loop.is_closed():
        if _worker_services is not None:
            _worker_loop.run_until_complete(_worker_services.close())
        _worker_loop.close()
        _worker_loop = None

    _worker_services = None
    logger.info("Celery worker process shutdown complete")


def get_worker_services() -> Optional[TrackingServices]:
    """Services of this worker process, or None if startup failed."""
    return _worker_services


def get_celery_app() -> Celery:
    return celery_app

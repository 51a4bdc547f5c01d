"""Celery tasks for the tracking engine.

Usage:
    # Start Celery worker (builds tracking services automatically)
    celery -A vesseltrack.celery_app worker -Q positions,default -l info

    # Start Celery beat (scheduler)
    celery -A vesseltrack.celery_app beat -l info

    # Trigger task manually (Python)
    from vesseltrack.tasks import refresh_all_fleets
    result = refresh_all_fleets.delay()
"""

from vesseltrack.celery_app import celery_app, get_celery_app, run_async
from vesseltrack.tasks.position_refresh import (
    refresh_all_fleets,
    refresh_all_fleets_impl,
    refresh_tenant,
)

__all__ = [
    "celery_app",
    "get_celery_app",
    "run_async",
    "refresh_all_fleets",
    "refresh_all_fleets_impl",
    "refresh_tenant",
]

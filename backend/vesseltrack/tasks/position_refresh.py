"""Scheduled position refresh tasks.

Provides:
- Periodic refresh of every tenant fleet
- On-demand refresh of one tenant
"""

import logging
import time
from typing import Any

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded

from vesseltrack.celery_app import get_worker_services, run_async
from vesseltrack.errors import StorageUnavailableError
from vesseltrack.services import TrackingServices
from vesseltrack.tenancy import TenantId, require_tenant

logger = logging.getLogger(__name__)


def _not_initialized(task_id: str) -> dict[str, Any]:
    logger.error(f"[{task_id}] Worker not initialized - tracking services not available")
    return {
        "status": "error",
        "message": "Worker not initialized - tracking services not available",
        "task_id": task_id,
    }


# ==================== Fleet Refresh Tasks ====================

@shared_task(
    name="positions.refresh_all_fleets",
    bind=True,
    acks_late=True,
)
def refresh_all_fleets(self) -> dict[str, Any]:
    """Refresh the fleets of every tenant that owns vessels.

    Scheduled by Celery Beat every ``refresh_interval_seconds``. Failed
    fetches are not retried; they are picked up by the next run.

    Returns:
        Dictionary with per-tenant results
    """
    task_id = self.request.id or "manual"
    logger.info(f"[{task_id}] Starting fleet refresh")

    services = get_worker_services()
    if services is None:
        return _not_initialized(task_id)

    try:
        return run_async(refresh_all_fleets_impl(services, task_id))
    except SoftTimeLimitExceeded:
        logger.warning(f"[{task_id}] Task soft time limit exceeded")
        return {
            "status": "timeout",
            "message": "Task exceeded soft time limit",
            "task_id": task_id,
        }
    except StorageUnavailableError as e:
        logger.error(f"[{task_id}] Storage unavailable: {e}")
        return {"status": "error", "message": str(e), "task_id": task_id}


@shared_task(name="positions.refresh_tenant", bind=True)
def refresh_tenant(self, tenant_id: str) -> dict[str, Any]:
    """Refresh a single tenant's fleet on demand."""
    task_id = self.request.id or "manual"

    services = get_worker_services()
    if services is None:
        return _not_initialized(task_id)

    try:
        tenant = require_tenant(tenant_id)
        report = run_async(services.orchestrator.refresh_fleet(tenant))
    except StorageUnavailableError as e:
        logger.error(f"[{task_id}] Storage unavailable: {e}")
        return {"status": "error", "message": str(e), "task_id": task_id}

    return {"status": "success", "task_id": task_id, "tenant": tenant.value, **_summary(report)}


def _summary(report) -> dict[str, Any]:
    return {
        "vessels": len(report.snapshots),
        "fetched": report.fetched,
        "rate_limited": report.rate_limited,
        "events_written": report.events_written,
        "degraded": report.degraded,
    }


async def refresh_all_fleets_impl(services: TrackingServices, task_id: str) -> dict[str, Any]:
    """Refresh each tenant in turn; one tenant's failure does not stop the rest.

    Args:
        services: Started tracking services
        task_id: Task ID for logging

    Returns:
        Refresh statistics dictionary
    """
    start_time = time.monotonic()
    tenants: list[TenantId] = await services.vessels.list_tenants()
    results: dict[str, Any] = {}

    for tenant in tenants:
        try:
            report = await services.orchestrator.refresh_fleet(tenant)
        except StorageUnavailableError as e:
            logger.error(f"[{task_id}] Refresh for tenant {tenant} failed: {e}")
            results[tenant.value] = {"status": "error", "message": str(e)}
            continue
        results[tenant.value] = {"status": "success", **_summary(report)}

    elapsed = time.monotonic() - start_time
    logger.info(f"[{task_id}] Refreshed {len(tenants)} tenant(s) in {elapsed:.2f}s")

    return {
        "status": "success",
        "tenants": results,
        "elapsed_seconds": elapsed,
        "task_id": task_id,
    }

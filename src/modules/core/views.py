"""Liveness endpoint for the fulfillment service.

Reports the database and the delivery configuration the board relies
on: the local time zone ("today" and slot urgency are computed in it)
and the configured drivers.
"""

import time
from typing import Any, Dict, Tuple

import structlog
from django.conf import settings
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.core.settings_provider import DjangoSettingsProvider
from modules.delivery.constants import DriverType

logger = structlog.get_logger(__name__)


def _check_database() -> Tuple[bool, Dict[str, Any]]:
    start = time.monotonic()
    try:
        conn = connections["default"]
        conn.ensure_connection()
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as exc:
        logger.error("health_check.database_down", error=str(exc))
        return False, {"status": "down"}
    return True, {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def _check_delivery_config() -> Tuple[bool, Dict[str, Any]]:
    drivers = DjangoSettingsProvider().driver_settings()
    missing = [value for value in DriverType.values if value not in drivers]
    if missing:
        logger.warning("health_check.drivers_missing", drivers=missing)
    return not missing, {
        "status": "up" if not missing else "degraded",
        "time_zone": settings.TIME_ZONE,
        "local_date": timezone.localdate().isoformat(),
        "drivers": sorted(drivers),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    database_ok, database = _check_database()
    config_ok, delivery = _check_delivery_config()

    # Missing driver settings only degrade display names; the database is fatal.
    if not database_ok:
        status = "unhealthy"
    elif not config_ok:
        status = "degraded"
    else:
        status = "healthy"

    logger.info("health_check.completed", status=status)
    return JsonResponse(
        {
            "status": status,
            "timestamp": timezone.now().isoformat(),
            "services": {"database": database, "delivery_config": delivery},
        },
        status=200 if database_ok else 503,
    )

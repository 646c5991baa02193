"""
Daily vehicle check compliance.

A driver has done today's check when at least one inspection was created
inside the local calendar day (DISPLAY_TIMEZONE) of the target time. Only the
latest inspection of that day is reported.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor

from flask import current_app
from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError

from backend.extensions import db
from backend.models.driver import Driver
from backend.models.vehicle_inspection import VehicleInspection
from backend.services.errors import UpstreamFailure
from backend.utils.timezone_utils import (
    utc_now, local_day_bounds, local_date_string, format_datetime_for_api
)

logger = logging.getLogger(__name__)


def round_half_up(value):
    return int(math.floor(value + 0.5))


def completion_rate(completed, total):
    if not total:
        return 0
    return round_half_up(completed / total * 100)


class DailyCheckService:
    @staticmethod
    def latest_inspection(driver_id, start, end):
        return (
            VehicleInspection.query
            .filter(
                VehicleInspection.driver_id == driver_id,
                VehicleInspection.created_at >= start,
                VehicleInspection.created_at < end,
            )
            .order_by(VehicleInspection.created_at.desc(), VehicleInspection.id.desc())
            .first()
        )

    @staticmethod
    def _latest_check_summary(inspection):
        if inspection is None:
            return None
        meta = inspection.meta or {}
        return {
            'id': inspection.id,
            'completedAt': format_datetime_for_api(inspection.created_at),
            'vehicleNumber': meta.get('vehicleNumber'),
            'status': meta.get('status'),
        }

    @staticmethod
    def check_driver_daily_status(driver_id, target=None, lookup=None):
        """
        Status of one driver for the local day containing `target`.

        `lookup(driver_id, start, end)` returns the latest inspection in the
        UTC window, defaulting to a database query.
        """
        lookup = lookup or DailyCheckService.latest_inspection
        target = target if target is not None else utc_now()
        start, end = local_day_bounds(target)
        inspection = lookup(driver_id, start, end)
        return {
            'driverId': driver_id,
            'hasCompletedTodaysCheck': inspection is not None,
            'latestCheck': DailyCheckService._latest_check_summary(inspection),
            'checkDate': local_date_string(target),
        }

    @staticmethod
    def check_multiple_drivers_status(driver_ids, target=None, lookup=None, max_workers=None):
        """
        Evaluate every driver concurrently.

        Returns (results, failed_ids). A lookup that raises is logged and its
        driver is left out of results; the other drivers are unaffected.
        """
        driver_ids = list(driver_ids)
        if not driver_ids:
            return [], []

        target = target if target is not None else utc_now()
        app = current_app._get_current_object()
        if max_workers is None:
            max_workers = app.config.get('DAILY_CHECK_MAX_WORKERS', 8)
        max_workers = max(1, min(max_workers, len(driver_ids)))

        def evaluate(driver_id):
            with app.app_context():
                return DailyCheckService.check_driver_daily_status(driver_id, target, lookup)

        results, failed = [], []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [(driver_id, executor.submit(evaluate, driver_id)) for driver_id in driver_ids]
            for driver_id, future in futures:
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.error(f"Daily check lookup failed for driver {driver_id}: {e}", exc_info=True)
                    failed.append(driver_id)
        return results, failed

    @staticmethod
    def summarize(driver_ids, results, failed=None, target=None):
        completed = sum(1 for r in results if r['hasCompletedTodaysCheck'])
        total = len(driver_ids)
        return {
            'checkDate': local_date_string(target if target is not None else utc_now()),
            'totalDrivers': total,
            'completedChecks': completed,
            'pendingChecks': len(results) - completed,
            'completionRate': completion_rate(completed, total),
            'failedLookups': list(failed or []),
        }

    @staticmethod
    def get_drivers_needing_check(target=None):
        """Active driver ids without any inspection in the local day of `target`."""
        start, end = local_day_bounds(target if target is not None else utc_now())
        try:
            rows = (
                db.session.query(Driver.id)
                .outerjoin(VehicleInspection, and_(
                    VehicleInspection.driver_id == Driver.id,
                    VehicleInspection.created_at >= start,
                    VehicleInspection.created_at < end,
                ))
                .filter(Driver.is_active.is_(True))
                .group_by(Driver.id)
                .having(db.func.count(VehicleInspection.id) == 0)
                .order_by(Driver.id)
                .all()
            )
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            logging.error(f"Error finding drivers needing a daily check: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch daily check status. Please try again later.")

    @staticmethod
    def get_daily_overview(target=None):
        """Dashboard overview: active drivers (by name) with their status plus the totals."""
        target = target if target is not None else utc_now()
        try:
            drivers = Driver.query_active().order_by(Driver.name.asc()).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching drivers for daily overview: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch daily check overview. Please try again later.")

        driver_ids = [d.id for d in drivers]
        results, failed = DailyCheckService.check_multiple_drivers_status(driver_ids, target)
        by_id = {r['driverId']: r for r in results}
        needing = set(DailyCheckService.get_drivers_needing_check(target))

        overview = DailyCheckService.summarize(driver_ids, results, failed, target)
        overview['drivers'] = [
            {
                'id': driver.id,
                'name': driver.name,
                'username': driver.username,
                'phone': driver.phone,
                'hasCompletedTodaysCheck': by_id[driver.id]['hasCompletedTodaysCheck'],
                'needsCheck': driver.id in needing,
                'latestCheck': by_id[driver.id]['latestCheck'],
                'checkStatus': (by_id[driver.id]['latestCheck'] or {}).get('status'),
            }
            for driver in drivers if driver.id in by_id
        ]
        return overview

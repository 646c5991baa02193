from datetime import date, datetime, timezone

import pytest

from backend.services.daily_check_service import DailyCheckService, completion_rate, round_half_up


class TestCompletionRate:
    def test_zero_drivers(self):
        assert completion_rate(0, 0) == 0

    def test_rounds_half_up(self):
        assert completion_rate(1, 8) == 13  # 12.5
        assert completion_rate(1, 3) == 33
        assert completion_rate(2, 3) == 67
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3


class TestSingleDriver:
    def test_no_inspection(self, make_driver, fixed_now):
        driver = make_driver()
        status = DailyCheckService.check_driver_daily_status(driver.id, fixed_now)
        assert status == {
            'driverId': driver.id,
            'hasCompletedTodaysCheck': False,
            'latestCheck': None,
            'checkDate': '2024-01-15',
        }

    def test_latest_of_two_same_day_checks(self, make_driver, make_inspection, fixed_now):
        driver = make_driver()
        make_inspection(driver, datetime(2024, 1, 15, 5, 0), status='bad', vehicle_number='11-111-11')
        later = make_inspection(driver, datetime(2024, 1, 15, 9, 0), status='good', vehicle_number='22-222-22')

        status = DailyCheckService.check_driver_daily_status(driver.id, fixed_now)
        assert status['hasCompletedTodaysCheck'] is True
        assert status['latestCheck'] == {
            'id': later.id,
            'completedAt': '2024-01-15T09:00:00+00:00',
            'vehicleNumber': '22-222-22',
            'status': 'good',
        }

    def test_missing_metadata_fields_are_none(self, db, make_driver, fixed_now):
        from backend.models.vehicle_inspection import VehicleInspection
        driver = make_driver()
        db.session.add(VehicleInspection(driver_id=driver.id, created_at=datetime(2024, 1, 15, 9, 0), meta={}))
        db.session.commit()

        latest = DailyCheckService.check_driver_daily_status(driver.id, fixed_now)['latestCheck']
        assert latest['vehicleNumber'] is None
        assert latest['status'] is None


class TestLocalDayBoundary:
    """Asia/Jerusalem is UTC+2 in January."""

    def test_late_evening_local_counts_for_that_day(self, make_driver, make_inspection):
        driver = make_driver()
        # 23:30 local on Jan 15 = 21:30 UTC Jan 15
        make_inspection(driver, datetime(2024, 1, 15, 21, 30))
        assert DailyCheckService.check_driver_daily_status(driver.id, date(2024, 1, 15))['hasCompletedTodaysCheck']
        assert not DailyCheckService.check_driver_daily_status(driver.id, date(2024, 1, 16))['hasCompletedTodaysCheck']

    def test_after_local_midnight_counts_for_next_day(self, make_driver, make_inspection):
        driver = make_driver()
        # 00:30 local on Jan 16 = 22:30 UTC Jan 15
        make_inspection(driver, datetime(2024, 1, 15, 22, 30))
        assert not DailyCheckService.check_driver_daily_status(driver.id, date(2024, 1, 15))['hasCompletedTodaysCheck']
        assert DailyCheckService.check_driver_daily_status(driver.id, date(2024, 1, 16))['hasCompletedTodaysCheck']

    def test_aware_target_is_read_in_local_time(self, make_driver, make_inspection):
        driver = make_driver()
        make_inspection(driver, datetime(2024, 1, 15, 22, 30))
        # 23:00 UTC Jan 15 is already Jan 16 locally
        target = datetime(2024, 1, 15, 23, 0, tzinfo=timezone.utc)
        status = DailyCheckService.check_driver_daily_status(driver.id, target)
        assert status['checkDate'] == '2024-01-16'
        assert status['hasCompletedTodaysCheck'] is True


class TestBatch:
    def test_failing_lookup_is_isolated(self, app, fixed_now):
        def lookup(driver_id, start, end):
            if driver_id == 2:
                raise RuntimeError("connection reset")
            if driver_id == 1:
                return None
            return _FakeInspection(driver_id)

        results, failed = DailyCheckService.check_multiple_drivers_status(
            [1, 2, 3], fixed_now, lookup=lookup, max_workers=3)

        assert failed == [2]
        assert [r['driverId'] for r in results] == [1, 3]
        assert results[0]['hasCompletedTodaysCheck'] is False
        assert results[1]['latestCheck']['vehicleNumber'] == 'V3'

        summary = DailyCheckService.summarize([1, 2, 3], results, failed, fixed_now)
        assert summary['totalDrivers'] == 3
        assert summary['completedChecks'] == 1
        assert summary['pendingChecks'] == 1
        assert summary['completionRate'] == 33
        assert summary['failedLookups'] == [2]

    def test_empty_batch(self, app):
        assert DailyCheckService.check_multiple_drivers_status([]) == ([], [])
        summary = DailyCheckService.summarize([], [])
        assert summary['completionRate'] == 0
        assert summary['totalDrivers'] == 0


class TestOverview:
    def test_overview_counts_active_drivers_only(self, make_driver, make_inspection, fixed_now):
        zoe = make_driver(name="Zoe")
        adam = make_driver(name="Adam")
        make_driver(name="Retired", is_active=False)
        make_inspection(zoe, datetime(2024, 1, 15, 7, 0))

        overview = DailyCheckService.get_daily_overview(fixed_now)
        assert overview['checkDate'] == '2024-01-15'
        assert overview['totalDrivers'] == 2
        assert overview['completedChecks'] == 1
        assert overview['pendingChecks'] == 1
        assert overview['completionRate'] == 50
        assert [d['name'] for d in overview['drivers']] == ['Adam', 'Zoe']
        assert [d['hasCompletedTodaysCheck'] for d in overview['drivers']] == [False, True]
        assert [d['needsCheck'] for d in overview['drivers']] == [True, False]
        assert [d['checkStatus'] for d in overview['drivers']] == [None, 'good']
        assert overview['drivers'][0]['username'] == adam.username

    def test_overview_with_no_active_drivers(self, db, fixed_now):
        overview = DailyCheckService.get_daily_overview(fixed_now)
        assert overview['totalDrivers'] == 0
        assert overview['completionRate'] == 0
        assert overview['drivers'] == []

    def test_drivers_needing_check(self, make_driver, make_inspection, fixed_now):
        done = make_driver(name="Done")
        pending = make_driver(name="Pending")
        yesterday_only = make_driver(name="Yesterday")
        make_driver(name="Inactive", is_active=False)
        make_inspection(done, datetime(2024, 1, 15, 7, 0))
        make_inspection(yesterday_only, datetime(2024, 1, 14, 7, 0))

        assert DailyCheckService.get_drivers_needing_check(fixed_now) == [pending.id, yesterday_only.id]


class _FakeInspection:
    def __init__(self, driver_id):
        self.id = driver_id * 10
        self.created_at = datetime(2024, 1, 15, 8, 0)
        self.meta = {'vehicleNumber': f'V{driver_id}', 'status': 'good'}

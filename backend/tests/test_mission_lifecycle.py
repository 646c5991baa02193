from datetime import datetime, timezone

import pytest

from backend.models.mission import Mission
from backend.services import mission_lifecycle
from backend.services.errors import ValidationError

NOW = datetime(2024, 1, 15, 14, 0, 0, tzinfo=timezone.utc)
LATER = datetime(2024, 1, 15, 15, 30, 0, tzinfo=timezone.utc)


def mission(status='waiting', driver_id=7, car_id=3, meta=None):
    return Mission(id=1, status=status, driver_id=driver_id, car_id=car_id, meta=meta or {})


class TestInitialStatus:
    def test_nothing_assigned(self):
        assert mission_lifecycle.initial_status(None, None) == 'unassigned'

    def test_driver_or_car_assigned(self):
        assert mission_lifecycle.initial_status(4, None) == 'waiting'
        assert mission_lifecycle.initial_status(None, 2) == 'waiting'


class TestCompletion:
    def test_sets_status_and_completed_at(self):
        m = mission()
        old = mission_lifecycle.apply_completion(m, {'car_id': 3}, 7, NOW)
        assert old == 'waiting'
        assert m.status == 'completed'
        assert m.completed_at == datetime(2024, 1, 15, 14, 0, 0)
        assert m.meta['certificate_images'] == []
        assert m.meta['package_images'] == []

    def test_location_is_stored_as_register_location(self):
        m = mission()
        payload = {'car_id': 3, 'metadata': {'location': {'lat': 32.08, 'lng': 34.78}}}
        mission_lifecycle.apply_completion(m, payload, 7, NOW)
        assert m.meta['register_location'] == {'lat': 32.08, 'lng': 34.78}

    def test_repeat_replaces_images_and_refreshes_time(self):
        m = mission()
        mission_lifecycle.apply_completion(
            m, {'car_id': 3, 'certificate_images': ['a.jpg', 'b.jpg'], 'package_images': ['p.jpg']}, 7, NOW)
        mission_lifecycle.apply_completion(m, {'car_id': 3, 'certificate_images': ['c.jpg']}, 7, LATER)
        assert m.status == 'completed'
        assert m.meta['certificate_images'] == ['c.jpg']
        assert m.meta['package_images'] == []
        assert m.completed_at == datetime(2024, 1, 15, 15, 30, 0)

    @pytest.mark.parametrize('car_id', [None, '3', True, 2.5, [3]])
    def test_car_id_must_be_a_number(self, car_id):
        m = mission()
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_completion(m, {'car_id': car_id}, 7, NOW)
        assert m.status == 'waiting'
        assert m.completed_at is None

    def test_body_driver_id_must_match(self):
        m = mission()
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_completion(m, {'car_id': 3, 'driver_id': 8}, 7, NOW)
        assert m.status == 'waiting'

    def test_images_must_be_lists_of_strings(self):
        m = mission()
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_completion(m, {'car_id': 3, 'package_images': 'p.jpg'}, 7, NOW)
        assert m.status == 'waiting'


class TestFailure:
    def test_sets_problem_fields(self):
        m = mission()
        old, previous = mission_lifecycle.apply_failure(
            m, {'car_id': 3, 'reason': 'Customer not home', 'failure_location': {'lat': 31.7, 'lng': 35.2}}, 7, NOW)
        assert old == 'waiting'
        assert previous is None
        assert m.status == 'problem'
        assert m.completed_at is None
        assert m.meta['failure_reason'] == 'Customer not home'
        assert m.meta['failure_images'] == []
        assert m.meta['failure_location'] == {'lat': 31.7, 'lng': 35.2}
        assert m.meta['reported'] is False
        assert m.meta['reported_to'] is None
        assert m.meta['date_failed'] == '2024-01-15T14:00:00+00:00'

    @pytest.mark.parametrize('reason', [None, '', '   ', 12])
    def test_reason_required(self, reason):
        m = mission(meta={'note': 'x'})
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_failure(m, {'car_id': 3, 'reason': reason}, 7, NOW)
        assert m.status == 'waiting'
        assert m.meta == {'note': 'x'}

    def test_car_id_required(self):
        m = mission()
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_failure(m, {'reason': 'Flat tyre'}, 7, NOW)
        assert m.status == 'waiting'

    def test_completed_mission_cannot_fail(self):
        m = mission(status='completed')
        m.completed_at = datetime(2024, 1, 15, 12, 0, 0)
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_failure(m, {'car_id': 3, 'reason': 'late'}, 7, NOW)
        assert m.status == 'completed'

    def test_re_report_returns_previous_failure_and_keeps_reported_to(self):
        m = mission()
        mission_lifecycle.apply_failure(
            m, {'car_id': 3, 'reason': 'Gate locked', 'reported': True, 'reported_to': 'Dispatcher Ron'}, 7, NOW)
        old, previous = mission_lifecycle.apply_failure(m, {'car_id': 3, 'reason': 'Still locked'}, 7, LATER)
        assert old == 'problem'
        assert previous['failure_reason'] == 'Gate locked'
        assert previous['reported_to'] == 'Dispatcher Ron'
        assert m.meta['failure_reason'] == 'Still locked'
        assert m.meta['reported_to'] == 'Dispatcher Ron'
        assert m.meta['date_failed'] == '2024-01-15T15:30:00+00:00'

    def test_re_report_can_clear_reported_to(self):
        m = mission()
        mission_lifecycle.apply_failure(
            m, {'car_id': 3, 'reason': 'Gate locked', 'reported_to': 'police'}, 7, NOW)
        mission_lifecycle.apply_failure(m, {'car_id': 3, 'reason': 'Still locked', 'reported_to': ''}, 7, LATER)
        assert m.meta['reported_to'] == ''


class TestDispatcherUpdate:
    def test_assigning_moves_unassigned_to_waiting(self):
        m = mission(status='unassigned', driver_id=None, car_id=None)
        mission_lifecycle.apply_dispatcher_update(m, {'driver_id': 5}, NOW)
        assert m.status == 'waiting'

    def test_unassigning_moves_back_to_unassigned(self):
        m = mission(status='waiting', driver_id=5, car_id=None)
        mission_lifecycle.apply_dispatcher_update(m, {'driver_id': None}, NOW)
        assert m.status == 'unassigned'

    def test_cannot_mark_unassigned_while_assigned(self):
        m = mission()
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_dispatcher_update(m, {'status': 'unassigned'}, NOW)
        assert m.status == 'waiting'

    def test_cannot_start_without_assignment(self):
        m = mission(status='unassigned', driver_id=None, car_id=None)
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_dispatcher_update(m, {'status': 'in_progress'}, NOW)

    def test_completed_is_terminal(self):
        m = mission(status='completed')
        m.completed_at = datetime(2024, 1, 15, 12, 0, 0)
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_dispatcher_update(m, {'status': 'waiting'}, NOW)
        assert m.status == 'completed'
        assert m.completed_at == datetime(2024, 1, 15, 12, 0, 0)

    def test_problem_requires_reason(self):
        m = mission()
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_dispatcher_update(m, {'status': 'problem'}, NOW)
        mission_lifecycle.apply_dispatcher_update(m, {'status': 'problem', 'failure_reason': 'Road closed'}, NOW)
        assert m.meta['failure_reason'] == 'Road closed'
        assert m.meta['date_failed'] == '2024-01-15T14:00:00+00:00'

    def test_completion_sets_completed_at(self):
        m = mission(status='in_progress')
        mission_lifecycle.apply_dispatcher_update(m, {'status': 'completed'}, NOW)
        assert m.completed_at == datetime(2024, 1, 15, 14, 0, 0)

    def test_invalid_status(self):
        m = mission()
        with pytest.raises(ValidationError):
            mission_lifecycle.apply_dispatcher_update(m, {'status': 'lost'}, NOW)

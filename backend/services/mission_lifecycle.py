"""
Mission status transitions.

These functions validate a request against a loaded Mission and only then
mutate it; a raised ValidationError always leaves the mission untouched.
Committing, ownership checks and audit rows are the caller's job
(see MissionService).
"""
import numbers

from marshmallow import ValidationError as SchemaValidationError

from backend.models.mission import MissionStatus
from backend.schemas.metadata_schema import CompletionMetadataSchema, FailureMetadataSchema
from backend.services.errors import ValidationError
from backend.utils.timezone_utils import format_datetime_for_api

FAILURE_FIELDS = (
    'failure_images',
    'failure_location',
    'failure_reason',
    'reported',
    'reported_to',
    'date_failed',
)


def _flatten_schema_errors(err):
    messages = []
    for field, field_errors in err.messages.items():
        if isinstance(field_errors, dict):
            field_errors = [f"{k}: {v}" for k, v in field_errors.items()]
        messages.append(f"{field}: {'; '.join(str(e) for e in field_errors)}")
    return ', '.join(messages)


def load_or_raise(schema, data):
    try:
        return schema.load(data)
    except SchemaValidationError as err:
        raise ValidationError(_flatten_schema_errors(err))


def require_car_id(payload):
    car_id = payload.get('car_id')
    # bool is an int subclass, JSON true/false is not a car id
    if isinstance(car_id, bool) or not isinstance(car_id, numbers.Real):
        raise ValidationError("car_id is required and must be a number")
    if isinstance(car_id, float) and not car_id.is_integer():
        raise ValidationError("car_id is required and must be a number")
    return int(car_id)


def check_requesting_driver(payload, driver_id):
    """The body may repeat driver_id, but only as the authenticated driver."""
    claimed = payload.get('driver_id')
    if claimed is not None and claimed != driver_id:
        raise ValidationError("driver_id does not match the authenticated driver")


def initial_status(driver_id, car_id):
    if driver_id is None and car_id is None:
        return MissionStatus.UNASSIGNED.value
    return MissionStatus.WAITING.value


def apply_completion(mission, payload, driver_id, now):
    """
    Mark `mission` completed by `driver_id`.

    Image arrays default to [] and replace whatever the mission held before.
    Completing an already completed mission is accepted and refreshes the
    images and completed_at.
    """
    check_requesting_driver(payload, driver_id)
    car_id = require_car_id(payload)

    completion = {
        'certificate_images': payload.get('certificate_images'),
        'package_images': payload.get('package_images'),
    }
    location = (payload.get('metadata') or {}).get('location')
    if location:
        completion['register_location'] = location
    completion = load_or_raise(CompletionMetadataSchema(), completion)

    old_status = mission.status
    mission.meta = {**(mission.meta or {}), **completion}
    mission.driver_id = driver_id
    mission.car_id = car_id
    mission.status = MissionStatus.COMPLETED.value
    mission.completed_at = now.replace(tzinfo=None)
    mission.updated_at = now.replace(tzinfo=None)
    return old_status


def apply_failure(mission, payload, driver_id, now):
    """
    Mark `mission` as a problem reported by `driver_id`.

    Returns (old_status, previous_failure) where previous_failure holds the
    failure fields being overwritten, or None on a first report.
    """
    if mission.is_terminal:
        raise ValidationError("Completed missions cannot be reported as failed")
    check_requesting_driver(payload, driver_id)
    car_id = require_car_id(payload)

    reason = payload.get('reason')
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("reason is required")

    previous_meta = dict(mission.meta or {})
    failure = load_or_raise(FailureMetadataSchema(), {
        'failure_images': payload.get('failure_images'),
        'failure_location': payload.get('failure_location'),
        'failure_reason': reason,
        'reported': bool(payload.get('reported')),
        'reported_to': payload['reported_to'] if 'reported_to' in payload else previous_meta.get('reported_to'),
        'date_failed': format_datetime_for_api(now),
    })

    previous_failure = None
    if 'failure_reason' in previous_meta:
        previous_failure = {key: previous_meta.get(key) for key in FAILURE_FIELDS}

    old_status = mission.status
    mission.meta = {**previous_meta, **failure}
    mission.driver_id = driver_id
    mission.car_id = car_id
    mission.status = MissionStatus.PROBLEM.value
    mission.completed_at = None
    mission.updated_at = now.replace(tzinfo=None)
    return old_status, previous_failure


def apply_dispatcher_update(mission, data, now):
    """
    Apply a dashboard edit, keeping the status invariants:

    - unassigned iff neither driver nor car is set
    - completed_at is set iff the status is completed
    - problem always carries failure_reason and date_failed
    - nothing leaves completed

    Returns the old status.
    """
    old_status = mission.status
    driver_id = data['driver_id'] if 'driver_id' in data else mission.driver_id
    car_id = data['car_id'] if 'car_id' in data else mission.car_id
    requested = data.get('status')
    assigned = driver_id is not None or car_id is not None

    if requested is not None and requested not in MissionStatus.values():
        raise ValidationError(f"Invalid status: {requested}")

    if requested is None:
        if not assigned and mission.status != MissionStatus.COMPLETED.value:
            new_status = MissionStatus.UNASSIGNED.value
        elif assigned and mission.status == MissionStatus.UNASSIGNED.value:
            new_status = MissionStatus.WAITING.value
        else:
            new_status = mission.status
    else:
        new_status = requested

    if not mission.can_transition_to(new_status):
        raise ValidationError(f"Invalid status transition from {mission.status} to {new_status}")
    if new_status == MissionStatus.UNASSIGNED.value and assigned:
        raise ValidationError("A mission with a driver or car cannot be unassigned")
    if new_status != MissionStatus.UNASSIGNED.value and not assigned:
        raise ValidationError(f"A {new_status} mission needs a driver or car")

    meta = {**(mission.meta or {}), **(data.get('metadata') or {})}
    if new_status == MissionStatus.PROBLEM.value and old_status != MissionStatus.PROBLEM.value:
        reason = data.get('failure_reason') or meta.get('failure_reason')
        if not isinstance(reason, str) or not reason.strip():
            raise ValidationError("failure_reason is required when marking a mission as problem")
        meta['failure_reason'] = reason
        meta['date_failed'] = format_datetime_for_api(now)

    for field in ('type', 'subtype', 'address', 'client_id', 'client_name', 'client_phone',
                  'date_expected', 'certificates'):
        if field in data:
            setattr(mission, field, data[field])

    mission.driver_id = driver_id
    mission.car_id = car_id
    mission.meta = meta
    mission.status = new_status
    if new_status == MissionStatus.COMPLETED.value:
        if mission.completed_at is None:
            mission.completed_at = data.get('completed_at') or now.replace(tzinfo=None)
    else:
        mission.completed_at = None
    mission.updated_at = now.replace(tzinfo=None)
    return old_status

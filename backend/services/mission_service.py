import logging
from datetime import timedelta

from sqlalchemy import case, cast, func, or_
from sqlalchemy.exc import SQLAlchemyError

from backend.extensions import db
from backend.models.mission import Mission, MissionStatus, STATUS_PRIORITY
from backend.models.mission_audit import MissionAudit
from backend.services import mission_lifecycle
from backend.services.errors import (
    ServiceError, ValidationError, NotFoundError, UnauthorizedError, UpstreamFailure
)
from backend.utils.mission_store import get_mission_store
from backend.utils.pagination import paginate_query
from backend.utils.timezone_utils import (
    utc_now, to_utc_naive, local_day_bounds, convert_utc_to_display
)

SORTABLE_FIELDS = {
    'created_at': Mission.created_at,
    'date_expected': Mission.date_expected,
    'completed_at': Mission.completed_at,
}

ANALYTICS_STATUSES = (
    MissionStatus.WAITING.value,
    MissionStatus.IN_PROGRESS.value,
    MissionStatus.COMPLETED.value,
    MissionStatus.PROBLEM.value,
)


def _status_priority():
    return case(STATUS_PRIORITY, value=Mission.status, else_=len(STATUS_PRIORITY) + 1)


def _naive(value):
    return to_utc_naive(value) if value is not None else None


def _invalidate_store():
    store = get_mission_store()
    if store is not None:
        store.invalidate()


def _record_audit(mission, old_status, reason=None, user_id=None, driver_id=None, additional_data=None):
    if old_status == mission.status and not additional_data:
        return
    db.session.add(MissionAudit(
        mission_id=mission.id,
        changed_at=mission.updated_at,
        changed_by_user_id=user_id,
        changed_by_driver_id=driver_id,
        old_status=old_status,
        new_status=mission.status,
        reason=reason,
        additional_data=additional_data,
    ))


class MissionService:
    @staticmethod
    def get_by_id(mission_id):
        try:
            return db.session.get(Mission, mission_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching mission {mission_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch mission. Please try again later.")

    @staticmethod
    def get_or_404(mission_id):
        mission = MissionService.get_by_id(mission_id)
        if not mission:
            raise NotFoundError("Mission not found")
        return mission

    @staticmethod
    def list(filters=None, sort_by='created_at', sort_order='desc', page=1, limit=None):
        """
        Dashboard mission list.

        filters: status ('all' or a status value), driver_id / car_id / client_id (an id or
        'none' for unassigned), search (client name or address text),
        date_from / date_to (dates, compared on date_expected in local days).
        """
        filters = filters or {}
        try:
            query = Mission.query

            status = filters.get('status')
            if status and status != 'all':
                if status not in MissionStatus.values():
                    raise ValidationError(f"Invalid status: {status}")
                query = query.filter(Mission.status == status)

            for field, column in (('driver_id', Mission.driver_id), ('car_id', Mission.car_id),
                                  ('client_id', Mission.client_id)):
                value = filters.get(field)
                if value is None or value == '':
                    continue
                if value == 'none':
                    query = query.filter(column.is_(None))
                else:
                    try:
                        query = query.filter(column == int(value))
                    except (TypeError, ValueError):
                        raise ValidationError(f"Invalid {field}: {value}")

            search = (filters.get('search') or '').strip()
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(
                    Mission.client_name.ilike(pattern),
                    cast(Mission.address, db.String).ilike(pattern),
                ))

            if filters.get('date_from'):
                start, _ = local_day_bounds(filters['date_from'])
                query = query.filter(Mission.date_expected >= start)
            if filters.get('date_to'):
                _, end = local_day_bounds(filters['date_to'])
                query = query.filter(Mission.date_expected < end)

            if sort_by == 'status':
                order = _status_priority()
            elif sort_by in SORTABLE_FIELDS:
                order = SORTABLE_FIELDS[sort_by]
            else:
                raise ValidationError(f"Invalid sortBy: {sort_by}")
            order = order.asc() if sort_order == 'asc' else order.desc()
            query = query.order_by(order, Mission.id.desc())

            return paginate_query(query, page, limit)
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error listing missions: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch missions. Please try again later.")

    @staticmethod
    def fetch_board():
        """All missions in board order: problems first, completed last."""
        return Mission.query.order_by(
            _status_priority(),
            Mission.date_expected.is_(None),
            Mission.date_expected.asc(),
            Mission.id.desc(),
        ).all()

    @staticmethod
    def board_snapshot():
        """Serialized board, the shape kept in the mission store."""
        from backend.schemas.mission_schema import MissionSchema
        return MissionSchema(many=True).dump(MissionService.fetch_board())

    @staticmethod
    def get_board():
        store = get_mission_store()
        if store is None:
            return MissionService.board_snapshot()
        try:
            return store.get()
        except SQLAlchemyError as e:
            logging.error(f"Error loading mission board: {e}", exc_info=True)
            raise UpstreamFailure("Could not load the mission board. Please try again later.")

    @staticmethod
    def create(data, user_id=None):
        try:
            driver_id = data.get('driver_id')
            car_id = data.get('car_id')
            mission = Mission(
                type=data.get('type') or 'delivery',
                subtype=data.get('subtype'),
                address=data.get('address'),
                client_id=data.get('client_id'),
                client_name=data.get('client_name'),
                client_phone=data.get('client_phone'),
                driver_id=driver_id,
                car_id=car_id,
                status=mission_lifecycle.initial_status(driver_id, car_id),
                date_expected=_naive(data.get('date_expected')),
                certificates=data.get('certificates'),
                meta=dict(data.get('metadata') or {}),
            )
            db.session.add(mission)
            db.session.flush()
            db.session.add(MissionAudit(
                mission_id=mission.id,
                changed_by_user_id=user_id,
                old_status=None,
                new_status=mission.status,
                reason='created',
            ))
            db.session.commit()
            _invalidate_store()
            return mission
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error creating mission: {e}", exc_info=True)
            raise UpstreamFailure("Could not create mission. Please try again later.")

    @staticmethod
    def update(mission_id, data, user_id=None):
        mission = MissionService.get_or_404(mission_id)
        data = dict(data)
        for field in ('date_expected', 'completed_at'):
            if field in data:
                data[field] = _naive(data[field])
        try:
            old_status = mission_lifecycle.apply_dispatcher_update(mission, data, utc_now())
            _record_audit(mission, old_status, reason=data.get('failure_reason'), user_id=user_id)
            db.session.commit()
            _invalidate_store()
            return mission
        except ServiceError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error updating mission {mission_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not update mission. Please try again later.")

    @staticmethod
    def delete(mission_id):
        mission = MissionService.get_or_404(mission_id)
        try:
            db.session.delete(mission)
            db.session.commit()
            _invalidate_store()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error deleting mission {mission_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not delete mission. Please try again later.")

    @staticmethod
    def get_audit(mission_id):
        mission = MissionService.get_or_404(mission_id)
        try:
            return mission.audit_records.order_by(MissionAudit.changed_at.asc(), MissionAudit.id.asc()).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching audit for mission {mission_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch mission history. Please try again later.")

    # ---------------- Driver actions ----------------

    @staticmethod
    def get_for_driver(mission_id, driver_id):
        """The mission if it belongs to `driver_id`; NotFound before ownership."""
        mission = MissionService.get_or_404(mission_id)
        if mission.driver_id != driver_id:
            raise UnauthorizedError("You are not assigned to this mission")
        return mission

    @staticmethod
    def complete_mission(mission_id, driver_id, payload, now=None):
        mission = MissionService.get_for_driver(mission_id, driver_id)
        now = now or utc_now()
        try:
            old_status = mission_lifecycle.apply_completion(mission, payload, driver_id, now)
            _record_audit(mission, old_status, reason='completed by driver', driver_id=driver_id)
            db.session.commit()
        except ServiceError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error completing mission {mission_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not register the mission. Please try again later.")
        logging.info(f"Mission {mission_id} completed by driver {driver_id}")
        _invalidate_store()
        return mission

    @staticmethod
    def fail_mission(mission_id, driver_id, payload, now=None):
        mission = MissionService.get_for_driver(mission_id, driver_id)
        now = now or utc_now()
        try:
            old_status, previous_failure = mission_lifecycle.apply_failure(mission, payload, driver_id, now)
            additional = {'previous_failure': previous_failure} if previous_failure else None
            _record_audit(mission, old_status, reason=mission.meta.get('failure_reason'),
                          driver_id=driver_id, additional_data=additional)
            db.session.commit()
        except ServiceError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error failing mission {mission_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not report the mission failure. Please try again later.")
        logging.info(f"Mission {mission_id} reported as problem by driver {driver_id}")
        _invalidate_store()
        return mission

    @staticmethod
    def get_driver_orders_for_day(driver_id, target_date, car_id=None):
        """
        The driver's missions expected on the local day `target_date`. With
        car_id, keep missions on that car or with no car at all.
        """
        start, end = local_day_bounds(target_date)
        try:
            query = Mission.query.filter(
                Mission.driver_id == driver_id,
                Mission.date_expected >= start,
                Mission.date_expected < end,
            )
            if car_id is not None:
                query = query.filter(or_(Mission.car_id == car_id, Mission.car_id.is_(None)))
            return query.order_by(Mission.date_expected.asc(), Mission.id.asc()).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching orders for driver {driver_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch orders. Please try again later.")

    @staticmethod
    def get_driver_orders_page(driver_id, page=1, limit=None):
        try:
            query = Mission.query.filter(Mission.driver_id == driver_id).order_by(
                Mission.date_expected.desc(), Mission.id.desc())
            return paginate_query(query, page, limit)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching order history for driver {driver_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch orders. Please try again later.")

    @staticmethod
    def get_driver_analytics(driver_id, now=None, days=7):
        """
        Counts per status plus completed missions per local day for the last
        `days` days (oldest first, today last).
        """
        now = now or utc_now()
        try:
            rows = (
                db.session.query(Mission.status, func.count(Mission.id))
                .filter(Mission.driver_id == driver_id)
                .group_by(Mission.status)
                .all()
            )
            counts = {status: 0 for status in ANALYTICS_STATUSES}
            for status, count in rows:
                if status in counts:
                    counts[status] = count

            today_start, _ = local_day_bounds(now)
            first_day = convert_utc_to_display(today_start).date() - timedelta(days=days - 1)
            window_start, _ = local_day_bounds(first_day)
            _, window_end = local_day_bounds(now)
            completed = (
                Mission.query.with_entities(Mission.completed_at)
                .filter(
                    Mission.driver_id == driver_id,
                    Mission.status == MissionStatus.COMPLETED.value,
                    Mission.completed_at >= window_start,
                    Mission.completed_at < window_end,
                )
                .all()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error computing analytics for driver {driver_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not compute analytics. Please try again later.")

        per_day = {}
        for offset in range(days):
            per_day[(first_day + timedelta(days=offset)).strftime('%Y-%m-%d')] = 0
        for (completed_at,) in completed:
            key = convert_utc_to_display(completed_at).strftime("%Y-%m-%d")
            if key in per_day:
                per_day[key] += 1

        return {
            'statusCounts': counts,
            'total': sum(counts.values()),
            'completedPerDay': [{'date': day, 'count': count} for day, count in per_day.items()],
        }

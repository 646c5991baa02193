import logging

from sqlalchemy import cast, or_
from sqlalchemy.exc import SQLAlchemyError

from backend.extensions import db
from backend.models.driver import Driver
from backend.models.vehicle_inspection import VehicleInspection
from backend.schemas.metadata_schema import InspectionMetadataSchema
from backend.services.errors import NotFoundError, UpstreamFailure
from backend.services.mission_lifecycle import load_or_raise
from backend.services.report_status import calculate_report_status
from backend.utils.pagination import paginate_query, paginate_list
from backend.utils.timezone_utils import utc_now, local_day_bounds

SORTABLE_FIELDS = {
    'created_at': VehicleInspection.created_at,
    'driver_name': Driver.name,
}


def _with_status(metadata):
    """Validated inspection metadata with the computed good/bad verdict stored."""
    loaded = load_or_raise(InspectionMetadataSchema(), metadata or {})
    loaded['status'] = calculate_report_status(loaded)
    return loaded


class InspectionService:
    @staticmethod
    def create(driver_id, metadata, car_id=None):
        """Store a daily check for `driver_id`; the verdict is computed here, once."""
        meta = _with_status(metadata)
        try:
            inspection = VehicleInspection(
                driver_id=driver_id,
                car_id=car_id,
                meta=meta,
                created_at=utc_now().replace(tzinfo=None),
            )
            db.session.add(inspection)
            db.session.commit()
            logging.info(f"Daily check {inspection.id} by driver {driver_id}: {meta['status']}")
            return inspection
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error creating vehicle inspection: {e}", exc_info=True)
            raise UpstreamFailure("Could not save the car report. Please try again later.")

    @staticmethod
    def get_by_id(inspection_id):
        try:
            inspection = db.session.get(VehicleInspection, inspection_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching vehicle inspection: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch the car report. Please try again later.")
        if not inspection:
            raise NotFoundError("Car report not found")
        return inspection

    @staticmethod
    def list(search=None, status=None, date=None, sort_by='created_at', sort_order='desc', page=1, limit=None):
        """Dashboard list; search matches the vehicle number or the driver name."""
        try:
            query = VehicleInspection.query.join(Driver, VehicleInspection.driver_id == Driver.id)
            search = (search or '').strip()
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(
                    Driver.name.ilike(pattern),
                    cast(VehicleInspection.meta, db.String).ilike(pattern),
                ))
            if date:
                start, end = local_day_bounds(date)
                query = query.filter(VehicleInspection.created_at >= start,
                                     VehicleInspection.created_at < end)

            column = SORTABLE_FIELDS.get(sort_by, VehicleInspection.created_at)
            column = column.asc() if sort_order == 'asc' else column.desc()
            query = query.order_by(column, VehicleInspection.id.desc())

            if status:
                # The verdict lives inside the JSON bag, filter after loading
                items = [i for i in query.all() if i.status == status]
                return paginate_list(items, page, limit)
            return paginate_query(query, page, limit)
        except SQLAlchemyError as e:
            logging.error(f"Error listing vehicle inspections: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch car reports. Please try again later.")

    @staticmethod
    def update(inspection_id, metadata):
        """Dispatcher correction of a report; the verdict is recomputed and stored."""
        inspection = InspectionService.get_by_id(inspection_id)
        merged = {**(inspection.meta or {}), **(metadata or {})}
        merged.pop('status', None)
        meta = _with_status(merged)
        try:
            inspection.meta = meta
            inspection.updated_at = utc_now().replace(tzinfo=None)
            db.session.commit()
            return inspection
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error updating vehicle inspection {inspection_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not update the car report. Please try again later.")

import logging

from sqlalchemy.exc import SQLAlchemyError

from backend.extensions import db
from backend.models.emergency_report import EmergencyReport
from backend.schemas.emergency_report_schema import EmergencyReportInputSchema
from backend.services.errors import NotFoundError, UpstreamFailure
from backend.services.mission_lifecycle import load_or_raise, check_requesting_driver
from backend.utils.pagination import paginate_query
from backend.utils.timezone_utils import utc_now

# form key -> column
FORM_COLUMNS = {
    'type': 'type',
    'formCompletionDate': 'form_completion_date',
    'identifierName': 'identifier_name',
    'incidentDate': 'incident_date',
    'incidentTime': 'incident_time',
    'incidentDescription': 'incident_description',
    'vehicleNumber': 'vehicle_number',
    'driverAtTime': 'driver_at_time',
    'employeeInvolved': 'employee_involved',
    'identifierSignature': 'identifier_signature',
    'crash_data': 'crash_data',
}


class EmergencyReportService:
    @staticmethod
    def create(driver_id, payload):
        """Store an incident report filed by `driver_id`."""
        check_requesting_driver(payload, driver_id)
        form = load_or_raise(EmergencyReportInputSchema(), payload)
        try:
            report = EmergencyReport(
                driver_id=driver_id,
                car_id=form.get('car_id'),
                meta=form.get('metadata'),
                created_at=utc_now().replace(tzinfo=None),
                **{column: form.get(key) for key, column in FORM_COLUMNS.items()},
            )
            db.session.add(report)
            db.session.commit()
            logging.info(f"Emergency report {report.id} ({report.type}) by driver {driver_id}")
            return report
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error creating emergency report: {e}", exc_info=True)
            raise UpstreamFailure("Could not save the emergency report. Please try again later.")

    @staticmethod
    def list(report_type=None, incident_date=None, page=1, limit=None):
        """Newest first; `report_type` 'all' or empty means every type."""
        try:
            query = EmergencyReport.query
            if report_type and report_type != 'all':
                query = query.filter(EmergencyReport.type == report_type)
            if incident_date:
                query = query.filter(EmergencyReport.incident_date == incident_date.isoformat())
            query = query.order_by(EmergencyReport.created_at.desc(), EmergencyReport.id.desc())
            return paginate_query(query, page, limit)
        except SQLAlchemyError as e:
            logging.error(f"Error listing emergency reports: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch emergency reports. Please try again later.")

    @staticmethod
    def get_by_id(report_id):
        try:
            report = db.session.get(EmergencyReport, report_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching emergency report: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch the emergency report. Please try again later.")
        if not report:
            raise NotFoundError("Emergency report not found")
        return report

from flask import Blueprint, request, jsonify
from flask_security import roles_accepted
from backend.api.helpers import DASHBOARD_ROLES, service_error, unexpected_error, page_args, date_arg
from backend.schemas.emergency_report_schema import EmergencyReportSchema
from backend.services.emergency_report_service import EmergencyReportService
from backend.services.errors import ServiceError

emergency_report_bp = Blueprint('emergency_report', __name__)
schema = EmergencyReportSchema()
schema_many = EmergencyReportSchema(many=True)


@emergency_report_bp.route('/emergency-reports', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def list_emergency_reports():
    """?type=<type|all>&date=YYYY-MM-DD (incident date), paginated"""
    try:
        page, limit = page_args()
        reports, pagination = EmergencyReportService.list(
            request.args.get('type'), date_arg('date'), page, limit)
        return jsonify({'data': schema_many.dump(reports), 'pagination': pagination}), 200
    except ValueError as ve:
        return jsonify({'error': str(ve)}), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('list_emergency_reports', e)


@emergency_report_bp.route('/emergency-reports/<int:report_id>', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def get_emergency_report(report_id):
    try:
        return jsonify(schema.dump(EmergencyReportService.get_by_id(report_id))), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_emergency_report', e)

from flask import Blueprint, request, jsonify
from flask_security import roles_accepted
from backend.api.helpers import DASHBOARD_ROLES, service_error, unexpected_error, page_args, date_arg
from backend.extensions import db
from backend.schemas.inspection_schema import VehicleInspectionSchema
from backend.services.errors import ServiceError
from backend.services.inspection_service import InspectionService

car_report_bp = Blueprint('car_report', __name__)
schema = VehicleInspectionSchema(session=db.session)
schema_many = VehicleInspectionSchema(many=True, session=db.session)


@car_report_bp.route('/car-reports', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def list_car_reports():
    try:
        page, limit = page_args()
        reports, pagination = InspectionService.list(
            search=request.args.get('search'),
            status=request.args.get('status'),
            date=date_arg('date'),
            sort_by=request.args.get('sortBy', 'created_at'),
            sort_order=request.args.get('sortOrder', 'desc'),
            page=page,
            limit=limit,
        )
        return jsonify({'data': schema_many.dump(reports), 'pagination': pagination}), 200
    except ValueError as ve:
        return jsonify({'error': str(ve)}), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('list_car_reports', e)


@car_report_bp.route('/car-reports/<int:report_id>', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def get_car_report(report_id):
    try:
        report = InspectionService.get_by_id(report_id)
        return jsonify(schema.dump(report)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_car_report', e)


@car_report_bp.route('/car-reports/<int:report_id>', methods=['PUT'])
@roles_accepted(*DASHBOARD_ROLES)
def update_car_report(report_id):
    try:
        data = request.get_json() or {}
        metadata = data.get('metadata', data)
        if not isinstance(metadata, dict):
            return jsonify({'error': 'metadata must be an object'}), 400
        report = InspectionService.update(report_id, metadata)
        return jsonify(schema.dump(report)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('update_car_report', e)

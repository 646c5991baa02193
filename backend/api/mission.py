from flask import Blueprint, request, jsonify
from flask_security import roles_accepted, current_user
from marshmallow import ValidationError as SchemaValidationError
from backend.api.helpers import DASHBOARD_ROLES, service_error, unexpected_error, page_args, date_arg
from backend.extensions import db
from backend.schemas.mission_schema import MissionSchema, MissionInputSchema, MissionAuditSchema
from backend.services.errors import ServiceError
from backend.services.mission_service import MissionService

mission_bp = Blueprint('mission', __name__)
schema = MissionSchema(session=db.session)
schema_many = MissionSchema(many=True, session=db.session)
input_schema = MissionInputSchema()
audit_schema_many = MissionAuditSchema(many=True)


@mission_bp.route('/missions', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def list_missions():
    try:
        filters = {
            'status': request.args.get('status'),
            'driver_id': request.args.get('driver_id'),
            'client_id': request.args.get('client_id'),
            'car_id': request.args.get('car_id'),
            'search': request.args.get('search'),
            'date_from': date_arg('date_from'),
            'date_to': date_arg('date_to'),
        }
        page, limit = page_args()
        missions, pagination = MissionService.list(
            filters,
            sort_by=request.args.get('sortBy', 'created_at'),
            sort_order=request.args.get('sortOrder', 'desc'),
            page=page,
            limit=limit,
        )
        return jsonify({'data': schema_many.dump(missions), 'pagination': pagination}), 200
    except ValueError as ve:
        return jsonify({'error': str(ve)}), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('list_missions', e)


@mission_bp.route('/missions/board', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def mission_board():
    try:
        return jsonify({'data': MissionService.get_board()}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('mission_board', e)


@mission_bp.route('/missions/<int:mission_id>', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def get_mission(mission_id):
    try:
        mission = MissionService.get_or_404(mission_id)
        return jsonify(schema.dump(mission)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_mission', e)


@mission_bp.route('/missions', methods=['POST'])
@roles_accepted(*DASHBOARD_ROLES)
def create_mission():
    try:
        data = input_schema.load(request.get_json() or {})
        mission = MissionService.create(data, user_id=current_user.id)
        return jsonify(schema.dump(mission)), 201
    except SchemaValidationError as err:
        return jsonify(err.messages), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('create_mission', e)


@mission_bp.route('/missions/<int:mission_id>', methods=['PUT'])
@roles_accepted(*DASHBOARD_ROLES)
def update_mission(mission_id):
    try:
        data = input_schema.load(request.get_json() or {}, partial=True)
        mission = MissionService.update(mission_id, data, user_id=current_user.id)
        return jsonify(schema.dump(mission)), 200
    except SchemaValidationError as err:
        return jsonify(err.messages), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('update_mission', e)


@mission_bp.route('/missions/<int:mission_id>', methods=['DELETE'])
@roles_accepted('admin', 'manager')
def delete_mission(mission_id):
    try:
        MissionService.delete(mission_id)
        return jsonify({'message': 'Mission deleted'}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('delete_mission', e)


@mission_bp.route('/missions/<int:mission_id>/audit', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def get_mission_audit(mission_id):
    try:
        records = MissionService.get_audit(mission_id)
        return jsonify(audit_schema_many.dump(records)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_mission_audit', e)

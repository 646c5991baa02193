from flask import Blueprint, request, jsonify
from flask_security import roles_accepted
from backend.api.helpers import DASHBOARD_ROLES, service_error, unexpected_error
from backend.extensions import db
from backend.schemas.driver_schema import DriverSchema
from backend.services.driver_service import DriverService
from backend.services.errors import ServiceError

driver_bp = Blueprint('driver', __name__)
schema = DriverSchema(session=db.session)
schema_many = DriverSchema(many=True, session=db.session)


@driver_bp.route('/drivers', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def list_drivers():
    try:
        include_inactive = request.args.get('include_inactive', 'false').lower() == 'true'
        drivers = DriverService.get_all(include_inactive=include_inactive)
        return jsonify(schema_many.dump(drivers)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('list_drivers', e)


@driver_bp.route('/drivers/<int:driver_id>', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def get_driver(driver_id):
    try:
        driver = DriverService.get_by_id(driver_id)
        return jsonify(schema.dump(driver)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_driver', e)


@driver_bp.route('/drivers', methods=['POST'])
@roles_accepted('admin', 'manager')
def create_driver():
    try:
        data = request.get_json() or {}
        errors = schema.validate(data)
        if errors:
            return jsonify(errors), 400
        driver = DriverService.create(data)
        return jsonify(schema.dump(driver)), 201
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('create_driver', e)


@driver_bp.route('/drivers/<int:driver_id>', methods=['PUT'])
@roles_accepted('admin', 'manager')
def update_driver(driver_id):
    try:
        data = request.get_json() or {}
        errors = schema.validate(data, partial=True)
        if errors:
            return jsonify(errors), 400
        driver = DriverService.update(driver_id, data)
        return jsonify(schema.dump(driver)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('update_driver', e)


@driver_bp.route('/drivers/<int:driver_id>/password', methods=['PUT'])
@roles_accepted('admin', 'manager')
def set_driver_password(driver_id):
    try:
        data = request.get_json() or {}
        DriverService.set_password(driver_id, data.get('password'))
        return jsonify({'message': 'Password updated'}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('set_driver_password', e)


@driver_bp.route('/drivers/<int:driver_id>', methods=['DELETE'])
@roles_accepted('admin', 'manager')
def delete_driver(driver_id):
    try:
        DriverService.delete(driver_id)
        return jsonify({'message': 'Driver deactivated'}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('delete_driver', e)

from flask import Blueprint, request, jsonify
from flask_security import roles_accepted
from backend.api.helpers import DASHBOARD_ROLES, service_error, unexpected_error
from backend.extensions import db
from backend.schemas.car_schema import CarSchema
from backend.services.car_service import CarService
from backend.services.errors import ServiceError

car_bp = Blueprint('car', __name__)
schema = CarSchema(session=db.session)
schema_many = CarSchema(many=True, session=db.session)


@car_bp.route('/cars', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def list_cars():
    try:
        include_inactive = request.args.get('include_inactive', 'false').lower() == 'true'
        cars = CarService.get_all(include_inactive=include_inactive)
        return jsonify(schema_many.dump(cars)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('list_cars', e)


@car_bp.route('/cars/<int:car_id>', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def get_car(car_id):
    try:
        driver = CarService.get_by_id(car_id)
        return jsonify(schema.dump(driver)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_car', e)


@car_bp.route('/cars', methods=['POST'])
@roles_accepted('admin', 'manager')
def create_car():
    try:
        data = request.get_json() or {}
        errors = schema.validate(data)
        if errors:
            return jsonify(errors), 400
        driver = CarService.create(data)
        return jsonify(schema.dump(driver)), 201
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('create_car', e)


@car_bp.route('/cars/<int:car_id>', methods=['PUT'])
@roles_accepted('admin', 'manager')
def update_car(car_id):
    try:
        data = request.get_json() or {}
        errors = schema.validate(data, partial=True)
        if errors:
            return jsonify(errors), 400
        driver = CarService.update(car_id, data)
        return jsonify(schema.dump(driver)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('update_car', e)

@car_bp.route('/cars/<int:car_id>', methods=['DELETE'])
@roles_accepted('admin', 'manager')
def delete_car(car_id):
    try:
        CarService.delete(car_id)
        return jsonify({'message': 'Car deactivated'}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('delete_car', e)

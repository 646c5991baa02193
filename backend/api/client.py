from flask import Blueprint, request, jsonify
from flask_security import roles_accepted
from backend.api.helpers import DASHBOARD_ROLES, service_error, unexpected_error, page_args
from backend.extensions import db
from backend.schemas.client_schema import ClientSchema
from backend.services.client_service import ClientService
from backend.services.errors import ServiceError

client_bp = Blueprint('client', __name__)
schema = ClientSchema(session=db.session)
schema_many = ClientSchema(many=True, session=db.session)


@client_bp.route('/clients', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def list_clients():
    try:
        page, limit = page_args()
        clients, pagination = ClientService.list(request.args.get('query'), page, limit)
        return jsonify({'data': schema_many.dump(clients), 'pagination': pagination}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('list_clients', e)


@client_bp.route('/clients/<int:client_id>', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def get_client(client_id):
    try:
        client = ClientService.get_by_id(client_id)
        return jsonify(schema.dump(client)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_client', e)


@client_bp.route('/clients', methods=['POST'])
@roles_accepted(*DASHBOARD_ROLES)
def create_client():
    try:
        data = request.get_json() or {}
        errors = schema.validate(data, partial=True)
        if errors:
            return jsonify(errors), 400
        client, created = ClientService.create(data)
        return jsonify(schema.dump(client)), 201 if created else 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('create_client', e)


@client_bp.route('/clients/<int:client_id>', methods=['PUT'])
@roles_accepted(*DASHBOARD_ROLES)
def update_client(client_id):
    try:
        data = request.get_json() or {}
        errors = schema.validate(data, partial=True)
        if errors:
            return jsonify(errors), 400
        client = ClientService.update(client_id, data)
        return jsonify(schema.dump(client)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('update_client', e)


@client_bp.route('/clients/<int:client_id>', methods=['DELETE'])
@roles_accepted('admin', 'manager')
def delete_client(client_id):
    try:
        client = ClientService.delete(client_id)
        if client is not None:
            return jsonify({'message': 'Client deactivated due to existing missions',
                            'client': schema.dump(client)}), 200
        return jsonify({'message': 'Client deleted successfully'}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('delete_client', e)


@client_bp.route('/clients/merge', methods=['POST'])
@roles_accepted('admin', 'manager')
def merge_clients():
    try:
        data = request.get_json() or {}
        client, merged_name = ClientService.merge(data.get('keepClientId'), data.get('mergeClientId'))
        return jsonify({
            'success': True,
            'message': f'Client "{merged_name}" has been merged into "{client.name}"',
            'client': schema.dump(client),
        }), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('merge_clients', e)

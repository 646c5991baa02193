from flask import Blueprint, send_file
from flask_security import roles_accepted
from backend.api.helpers import DASHBOARD_ROLES, service_error
from backend.services.errors import ServiceError
from backend.services.image_storage_service import ImageStorageService

files_bp = Blueprint('files', __name__)


@files_bp.route('/files/<path:reference>', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def get_file(reference):
    """Serve a stored image by its reference (images/YYYY/MM/DD/<name>.jpg)."""
    try:
        path = ImageStorageService.from_config().resolve(reference)
        return send_file(path, mimetype='image/jpeg')
    except ServiceError as se:
        return service_error(se)

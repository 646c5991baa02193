from functools import wraps
import logging

from flask import Blueprint, request, jsonify, g, current_app
from werkzeug.utils import secure_filename

from backend.api.helpers import service_error, unexpected_error, page_args, date_arg
from backend.extensions import db, limiter
from backend.schemas.emergency_report_schema import EmergencyReportSchema
from backend.schemas.inspection_schema import VehicleInspectionSchema
from backend.schemas.mission_schema import MissionSchema
from backend.services.daily_check_service import DailyCheckService
from backend.services.driver_auth_service import DriverAuthService
from backend.services.emergency_report_service import EmergencyReportService
from backend.services.errors import ServiceError, ValidationError
from backend.services.image_storage_service import ImageStorageService
from backend.services.inspection_service import InspectionService
from backend.services.mission_service import MissionService
from backend.services.report_status import failed_items

# ---- Blueprint for the driver mobile app ----
mobile_driver_bp = Blueprint('mobile_driver', __name__)

order_schema = MissionSchema(session=db.session)
order_schema_many = MissionSchema(many=True, session=db.session)
report_schema = VehicleInspectionSchema(session=db.session)
emergency_schema = EmergencyReportSchema()


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip()
    return None


def driver_auth_required(f):
    """Resolve the bearer token to g.driver (a DriverIdentity) or answer 401/403."""
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            g.driver = DriverAuthService.verify_token(_bearer_token())
        except ServiceError as se:
            return service_error(se)
        return f(*args, **kwargs)
    return decorated


def _allowed_image(filename):
    allowed = current_app.config.get('ALLOWED_IMAGE_EXTENSIONS', {'jpg', 'jpeg', 'png'})
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed


# ---------------- AUTH ----------------
@mobile_driver_bp.route('/drivers/auth', methods=['POST'])
@limiter.limit("10 per minute")
def driver_login():
    try:
        data = request.get_json() or {}
        result = DriverAuthService.authenticate(data.get('username'), data.get('password'))
        return jsonify({'message': 'Login successful', **result}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('driver_login', e)


# ---------------- ORDERS ----------------
@mobile_driver_bp.route('/drivers/orders', methods=['GET'])
@driver_auth_required
@limiter.limit("1000 per hour")
def get_driver_orders():
    """
    Driver Orders API
    - ?date=YYYY-MM-DD[&car=<id>] → that local day's orders by expected time;
      with car, orders on that car or on no car
    - otherwise ?page=&limit= → full history, newest first
    """
    try:
        target = date_arg('date')
        if target is not None:
            car_id = request.args.get('car', type=int)
            orders = MissionService.get_driver_orders_for_day(g.driver.driver_id, target, car_id)
            return jsonify({'data': order_schema_many.dump(orders)}), 200

        page, limit = page_args()
        orders, pagination = MissionService.get_driver_orders_page(g.driver.driver_id, page, limit)
        return jsonify({'data': order_schema_many.dump(orders), 'pagination': pagination}), 200
    except ValueError as ve:
        return jsonify({'error': str(ve)}), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_driver_orders', e)


@mobile_driver_bp.route('/drivers/orders/<int:order_id>', methods=['GET'])
@driver_auth_required
def get_driver_order(order_id):
    try:
        order = MissionService.get_for_driver(order_id, g.driver.driver_id)
        return jsonify(order_schema.dump(order)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('get_driver_order', e)


@mobile_driver_bp.route('/drivers/orders/<int:order_id>/register', methods=['POST'])
@driver_auth_required
def register_order(order_id):
    """Complete an order: car_id, optional certificate/package images and location."""
    try:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        order = MissionService.complete_mission(order_id, g.driver.driver_id, payload)
        return jsonify({'message': 'Order registered successfully', 'order': order_schema.dump(order)}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('register_order', e)


@mobile_driver_bp.route('/drivers/orders/<int:order_id>/fail', methods=['POST'])
@driver_auth_required
def fail_order(order_id):
    """Report an order as a problem: reason and car_id required."""
    try:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        order = MissionService.fail_mission(order_id, g.driver.driver_id, payload)
        return jsonify({'message': 'Order failure reported', 'order': order_schema.dump(order)}), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('fail_order', e)


# ---------------- DAILY CHECK ----------------
@mobile_driver_bp.route('/drivers/car-report', methods=['POST'])
@driver_auth_required
def create_car_report():
    """
    Daily vehicle check.
    Body: {"metadata": {...}, "car_id": <id>} or the metadata fields directly.
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        metadata = data.get('metadata') if isinstance(data.get('metadata'), dict) else data
        metadata = {k: v for k, v in metadata.items() if k != 'car_id'}
        report = InspectionService.create(g.driver.driver_id, metadata, car_id=data.get('car_id'))
        return jsonify({
            'message': 'Car report saved',
            'report': report_schema.dump(report),
            'failedItems': failed_items(report.meta),
        }), 201
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('create_car_report', e)


@mobile_driver_bp.route('/drivers/emergency-report', methods=['POST'])
@driver_auth_required
def create_emergency_report():
    """Incident form: type, incident date/time/description, vehicle, signature, crash_data, metadata."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        report = EmergencyReportService.create(g.driver.driver_id, data)
        return jsonify(emergency_schema.dump(report)), 201
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('create_emergency_report', e)


@mobile_driver_bp.route('/drivers/daily-check-status', methods=['GET'])
@driver_auth_required
def daily_check_status():
    try:
        target = date_arg('date')
        return jsonify(DailyCheckService.check_driver_daily_status(g.driver.driver_id, target)), 200
    except ValueError as ve:
        return jsonify({'error': str(ve)}), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('daily_check_status', e)


# ---------------- ANALYTICS ----------------
@mobile_driver_bp.route('/drivers/analytics', methods=['GET'])
@driver_auth_required
def driver_analytics():
    try:
        return jsonify(MissionService.get_driver_analytics(g.driver.driver_id)), 200
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('driver_analytics', e)


# ---------------- UPLOADS ----------------
@mobile_driver_bp.route('/drivers/upload', methods=['POST'])
@driver_auth_required
@limiter.limit("120 per hour")
def upload_image():
    """
    Upload Image API
    - Compresses the photo to JPEG
    - Stores it by date with content-hash deduplication
    - Returns the reference to put in certificate/package/failure images
    """
    if 'file' not in request.files:
        return jsonify({'error': 'No file part in request'}), 400

    file = request.files['file']
    if not file or not file.filename:
        return jsonify({'error': 'No selected file'}), 400
    filename = secure_filename(file.filename)
    if not _allowed_image(filename):
        allowed = ', '.join(sorted(current_app.config.get('ALLOWED_IMAGE_EXTENSIONS', [])))
        return jsonify({'error': f'Format not allowed. Allowed: {allowed}'}), 400

    max_upload = current_app.config.get('MAX_UPLOAD_SIZE', 10 * 1024 * 1024)
    if file.content_length and file.content_length > max_upload:
        return jsonify({'error': 'File too large'}), 400

    try:
        content = file.read(max_upload + 1)
        if len(content) > max_upload:
            return jsonify({'error': 'File too large'}), 400
        storage = ImageStorageService.from_config()
        compressed = storage.compress(content, current_app.config.get('MAX_IMAGE_SIZE_MB', 2.0))
        prefix = request.form.get('prefix') or f"driver{g.driver.driver_id}"
        reference = storage.store(compressed, prefix)
        logging.info(f"Driver {g.driver.driver_id} uploaded {reference}")
        return jsonify({'message': 'Image uploaded', 'reference': reference}), 201
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('upload_image', e)

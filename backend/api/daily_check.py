from flask import Blueprint, request, jsonify
from flask_security import roles_accepted
from backend.api.helpers import DASHBOARD_ROLES, service_error, unexpected_error, date_arg
from backend.services.daily_check_service import DailyCheckService
from backend.services.errors import ServiceError

daily_check_bp = Blueprint('daily_check', __name__)


@daily_check_bp.route('/daily-check-overview', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def daily_check_overview():
    """
    Daily vehicle check compliance for every active driver.
    ?date=YYYY-MM-DD picks the local day, default today.
    """
    try:
        target = date_arg('date')
        return jsonify(DailyCheckService.get_daily_overview(target)), 200
    except ValueError as ve:
        return jsonify({'error': str(ve)}), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('daily_check_overview', e)


@daily_check_bp.route('/drivers-needing-check', methods=['GET'])
@roles_accepted(*DASHBOARD_ROLES)
def drivers_needing_check():
    try:
        target = date_arg('date')
        return jsonify({'driverIds': DailyCheckService.get_drivers_needing_check(target)}), 200
    except ValueError as ve:
        return jsonify({'error': str(ve)}), 400
    except ServiceError as se:
        return service_error(se)
    except Exception as e:
        return unexpected_error('drivers_needing_check', e)

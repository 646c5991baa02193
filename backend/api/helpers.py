import logging
from flask import jsonify, request
from backend.utils.timezone_utils import parse_date_param

# Dashboard accounts allowed to manage dispatch data
DASHBOARD_ROLES = ('admin', 'manager', 'dispatcher')


def service_error(se):
    return jsonify({'error': se.message}), se.code


def unexpected_error(view_name, e):
    logging.error(f"Unhandled error in {view_name}: {e}", exc_info=True)
    return jsonify({'error': 'An unexpected error occurred. Please try again later.'}), 500


def page_args():
    return request.args.get('page', 1, type=int), request.args.get('limit', None, type=int)


def date_arg(name):
    """YYYY-MM-DD query parameter as a date; ValueError on a bad value."""
    return parse_date_param(request.args.get(name))

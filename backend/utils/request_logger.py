"""
Per-request access log with duration and process memory/CPU deltas
"""
import json
import logging
import time
from flask import request, g
import psutil

logger = logging.getLogger(__name__)

# Never logged, even for small JSON bodies
REDACTED_FIELDS = {'password', 'token', 'driverSignature'}


def _redact(body):
    if not isinstance(body, dict):
        return body
    return {k: ('***' if k in REDACTED_FIELDS else v) for k, v in body.items()}


class RequestLogger:
    """Request logging hooks with performance metrics"""

    @staticmethod
    def init_app(app):
        app.before_request(RequestLogger.before_request)
        app.after_request(RequestLogger.after_request)

    @staticmethod
    def before_request():
        g.start_time = time.time()
        g.request_id = f"{int(time.time() * 1000000)}"

        try:
            process = psutil.Process()
            g.initial_memory = process.memory_info().rss
            g.initial_cpu_times = process.cpu_times()
        except psutil.Error as e:
            logger.debug(f"Could not collect initial process metrics: {e}")
            g.initial_memory = 0
            g.initial_cpu_times = None

    @staticmethod
    def after_request(response):
        if not hasattr(g, 'start_time'):
            return response

        duration_ms = (time.time() - g.start_time) * 1000
        memory_diff = 0
        cpu_user_time = 0
        cpu_system_time = 0

        try:
            if getattr(g, 'initial_memory', 0) > 0:
                process = psutil.Process()
                memory_diff = process.memory_info().rss - g.initial_memory
                if g.initial_cpu_times:
                    final_cpu_times = process.cpu_times()
                    cpu_user_time = final_cpu_times.user - g.initial_cpu_times.user
                    cpu_system_time = final_cpu_times.system - g.initial_cpu_times.system
        except psutil.Error as e:
            logger.debug(f"Could not collect final process metrics: {e}")

        log_data = {
            'request_id': getattr(g, 'request_id', 'unknown'),
            'method': request.method,
            'path': request.path,
            'endpoint': request.endpoint,
            'remote_addr': request.remote_addr,
            'driver_id': getattr(getattr(g, 'driver', None), 'driver_id', None),
            'duration_ms': round(duration_ms, 2),
            'status_code': response.status_code,
            'memory_delta_mb': round(memory_diff / (1024 * 1024), 3) if memory_diff > 0 else 0,
            'cpu_user_time': round(cpu_user_time, 4),
            'cpu_system_time': round(cpu_system_time, 4),
        }
        if request.args:
            log_data['query_params'] = dict(request.args)
        if request.is_json and request.content_length and request.content_length < 1024:
            log_data['json_body'] = _redact(request.get_json(silent=True))

        log_level = logging.INFO
        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING

        logger.log(log_level, f"REQUEST_LOG: {json.dumps(log_data, default=str)}")
        return response

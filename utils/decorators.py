"""
Decorators for API endpoints and service functions.

Consistent error handling and the admin secret check.
"""

from functools import wraps
from quart import jsonify, request
from typing import Callable, Any

from utils.api_responses import unauthorized_response
from utils.logging_config import get_logger

logger = get_logger('API')


def api_handler(log_errors: bool = True):
    """
    Decorator for API endpoints that handles:
    - Exception catching with proper logging
    - Consistent response format

    ValueError becomes a 400 with its message; any other exception becomes a
    500 with a generic message (details go to the log only).

    Usage:
        @api_blueprint.route('/endpoint')
        @api_handler()
        async def my_endpoint():
            return {"data": "value"}  # Auto-wrapped with success=True
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            try:
                result = await func(*args, **kwargs)

                # Auto-wrap dict responses
                if isinstance(result, dict):
                    if 'success' not in result:
                        result = {"success": True, **result}
                    return jsonify(result)

                return result

            except ValueError as e:
                if log_errors:
                    logger.warning(f"{func.__name__}: {e}")
                return jsonify({"success": False, "error": str(e)}), 400
            except Exception:
                if log_errors:
                    logger.exception(f"Unhandled error in {func.__name__}")
                return jsonify({"success": False, "error": "Internal server error"}), 500

        return wrapper
    return decorator


def require_secret(func: Callable) -> Callable:
    """
    Decorator that requires the system secret (?secret=) for the endpoint.
    Can be used standalone or with api_handler.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        from config import RELOAD_SECRET
        secret = request.args.get('secret', '')
        if secret != RELOAD_SECRET:
            return unauthorized_response()
        return await func(*args, **kwargs)
    return wrapper

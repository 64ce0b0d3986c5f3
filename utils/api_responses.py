"""
Standardized API response utilities.
All API endpoints should use these functions for consistent response format.
"""

from quart import jsonify, Response
from typing import Any, Dict, Tuple


def success_response(data: Dict[str, Any] = None, message: str = None) -> Response:
    """
    Create a standardized success response.

    Example:
        return success_response({"count": 10}, "Operation completed")
        # Returns: {"success": True, "message": "Operation completed", "count": 10}
    """
    response = {"success": True}
    if message:
        response["message"] = message
    if data:
        response.update(data)
    return jsonify(response)


def error_response(error: str, status_code: int = 400, data: Dict[str, Any] = None) -> Tuple[Response, int]:
    """
    Create a standardized error response.

    Example:
        return error_response("Invalid input", 400)
        # Returns: {"success": False, "error": "Invalid input"}, 400
    """
    response = {"success": False, "error": str(error)}
    if data:
        response.update(data)
    return jsonify(response), status_code


def unauthorized_response(message: str = "Unauthorized") -> Tuple[Response, int]:
    """Create a 401 response."""
    return error_response(message, 401)


def search_response(result, status_code: int = 200):
    """
    Turn a search result object into a response.

    The full result body is returned either way, so an error response still
    carries totals and resolved wildcards.
    """
    body = result.to_dict()
    if status_code >= 400:
        return error_response(body.pop('error', 'Request failed'), status_code, body)
    return success_response(body)

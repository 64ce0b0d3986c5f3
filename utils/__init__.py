from .api_responses import (
    success_response,
    error_response,
    unauthorized_response,
    search_response,
)
from .decorators import api_handler, require_secret
from .logging_config import setup_logging, get_logger
from .request_helpers import get_query_list
from .validation import parse_int_param, validate_enum

# utils.tag_blacklist depends on core and is imported directly

__all__ = [
    'success_response',
    'error_response',
    'unauthorized_response',
    'search_response',
    'api_handler',
    'require_secret',
    'setup_logging',
    'get_logger',
    'get_query_list',
    'parse_int_param',
    'validate_enum',
]

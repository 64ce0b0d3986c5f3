"""
Validation utilities for API query parameters.

Raise ValueError with a user-facing message; api_handler turns it into a 400.
"""

from typing import Any, List, Optional


def parse_int_param(value: Any, param_name: str = "parameter", default: int = None,
                    min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    """
    Parse an optional integer query parameter and clamp it to bounds.

    Args:
        value: Raw parameter value (None or '' means "use default")
        param_name: Name of the parameter (for error messages)
        default: Value used when the parameter is missing
        min_value: Lower bound, values below it are raised to it
        max_value: Upper bound, values above it are lowered to it

    Returns:
        Parsed integer

    Raises:
        ValueError: If the value is present but not an integer
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            raise ValueError(f"{param_name} is required")
        result = default
    else:
        try:
            result = int(value)
        except (ValueError, TypeError) as e:
            raise ValueError(f"{param_name} must be an integer") from e

    if min_value is not None and result < min_value:
        result = min_value
    if max_value is not None and result > max_value:
        result = max_value
    return result


def validate_enum(value: Any, param_name: str = "parameter",
                  allowed_values: Optional[List[str]] = None) -> str:
    """
    Validate that a value is one of the allowed values (case-insensitive).

    Returns:
        The allowed value as spelled in `allowed_values`

    Raises:
        ValueError: If validation fails
    """
    if value is None:
        raise ValueError(f"{param_name} is required")

    if not isinstance(value, str):
        raise ValueError(f"{param_name} must be a string")

    if allowed_values is None:
        raise ValueError("allowed_values must be provided")

    lowered = value.strip().lower()
    for allowed in allowed_values:
        if allowed.lower() == lowered:
            return allowed

    raise ValueError(f"{param_name} must be one of: {', '.join(allowed_values)}")

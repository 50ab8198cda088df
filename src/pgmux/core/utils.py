"""Utility functions for pgmux operations.

This module provides small helpers shared across pgmux: validation and
lenient type conversion.

Functions:
    safe_cast: Cast a value, falling back to a default on failure
    safe_int: Parse an integer, rejecting booleans

Example:
    >>> safe_int("15")
    15
    >>> ValidationUtils.validate_instance_name("analytics-eu")
    True
"""

import re
from typing import Any, Optional, Union


class ValidationUtils:
    """Utility class for validation operations."""

    INSTANCE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_\-]*$")

    @classmethod
    def validate_instance_name(cls, name: str) -> bool:
        """Validate an instance name.

        Instance names become part of environment variable keys, so they are
        limited to letters, digits, underscores and dashes.

        Example:
            >>> ValidationUtils.validate_instance_name("analytics-eu")
            True
            >>> ValidationUtils.validate_instance_name("bad name")
            False
        """
        if not name:
            return False
        return bool(cls.INSTANCE_NAME_PATTERN.match(name))

    @staticmethod
    def validate_port(port: Union[int, str]) -> bool:
        """Validate network port number."""
        try:
            port_num = int(port)
        except (ValueError, TypeError):
            return False
        return 1 <= port_num <= 65535


def safe_cast(value: Any, target_type: type, *, default: Any = None) -> Any:
    """Safely cast value to target type.

    Args:
        value: Value to cast
        target_type: Target type
        default: Default value if casting fails

    Returns:
        Cast value or default

    Example:
        >>> safe_cast("123", int)
        123
        >>> safe_cast("invalid", int, default=0)
        0
    """
    try:
        return target_type(value)
    except (ValueError, TypeError):
        return default


def safe_int(value: Any, *, default: Optional[int] = None) -> Optional[int]:
    """Convert a loosely typed value to ``int``.

    Integers pass through, floats are truncated toward zero and numeric
    strings are parsed. Booleans, NaN/infinite floats and anything else
    yield ``default``.

    Example:
        >>> safe_int(7.9)
        7
        >>> safe_int(-2.5)
        -2
        >>> safe_int(True, default=5)
        5
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return default
        return int(value)
    if isinstance(value, str):
        return safe_cast(value.strip(), int, default=default)
    return default


"""Validation helpers for step guards and argument checks.

Eliminates repeated precondition boilerplate across the workflow components.
"""

from collections.abc import Collection
from typing import Any

from .errors import InvalidArgumentError, StepValidationError


def require_fields(step: int, checks: dict[str, Any]) -> None:
    """Require every named value to be truthy, reporting all missing at once."""
    missing = [name for name, value in checks.items() if not value]
    if missing:
        raise StepValidationError(step, missing)


def require_positive(value: int, error_msg: str) -> None:
    """Require that a value is greater than zero."""
    if value <= 0:
        raise InvalidArgumentError(error_msg)


def require_member(value: Any, allowed: Collection[Any], error_msg: str) -> None:
    """Require that a value is one of an allowed set."""
    if value not in allowed:
        raise InvalidArgumentError(error_msg)


def require_index(index: int, size: int, error_msg: str) -> None:
    """Require that an index addresses an existing element."""
    if index < 0 or index >= size:
        raise InvalidArgumentError(error_msg)

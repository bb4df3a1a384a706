"""
Utility helpers for filesystem paths and plain-text number rendering.

Centralizes logic for resolving paths relative to the project root so the
configuration and logging layers agree on where files live.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent


def get_project_root() -> Path:
    """Return the repository root directory."""
    return _PROJECT_ROOT


def _coerce_path(path_value: str | Path, *, allow_relative: bool = True) -> Path:
    """
    Convert a string/Path into an absolute project-root based Path.

    Args:
        path_value: Candidate filesystem path.
        allow_relative: If False, value must already be absolute.

    Returns:
        Absolute Path instance.
    """
    path = Path(path_value)
    if path.is_absolute() or not allow_relative:
        return path
    return get_project_root() / path


def resolve_config_path(config_path: str | Path) -> Path:
    """Resolve a configuration file path against the project root."""
    return _coerce_path(config_path)


def resolve_log_path(log_path: str | Path) -> Path:
    """
    Convert a log file path to an absolute path under the project root when needed.

    Args:
        log_path: Configured log file path (relative or absolute).

    Returns:
        Absolute Path for logging output.
    """
    resolved = _coerce_path(log_path)
    if resolved.parent != resolved:
        resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def round_money(value: float) -> float:
    """Round a monetary amount to cents, leaving infinities untouched."""
    if math.isinf(value):
        return value
    return round(value, 2)


def format_amount(value: float) -> str:
    """
    Render an amount with thousands separators and two decimals.

    Locale-aware currency formatting belongs to the UI layer; this is only
    used for the plain-text insight and summary narratives.
    """
    return f"{value:,.2f}"

"""
Environment helpers for config dataclasses.

``read_env_defaults`` builds constructor kwargs for a config
dataclass from environment variables, coercing each raw string
to the type of the field's default value.
"""

from __future__ import annotations

import os
from dataclasses import MISSING, Field
from logging import getLogger
from typing import Any, Dict, List, Optional

logger = getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _field_default(field: Field) -> Any:
    if field.default is not MISSING:
        return field.default
    if field.default_factory is not MISSING:  # type: ignore[misc]
        return field.default_factory()  # type: ignore[misc]
    return None


def parse_list(raw: str) -> List[str]:
    """Split a comma-separated value, dropping blanks."""
    return [part.strip() for part in raw.split(",") if part.strip()]


def coerce_env_value(raw: str, default: Any) -> Any:
    """Convert ``raw`` to the type of ``default``.

    Raises:
        ValueError: If the value cannot be converted.
    """
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, (list, tuple)):
        return parse_list(raw)
    return raw


def read_env_defaults(
    env_map: Dict[str, str],
    fields: Dict[str, Field],
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Collect field values from the environment.

    Only fields whose variable is set appear in the result, so the
    dataclass keeps its own default for everything else. A value that
    fails to parse is logged and skipped.
    """
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for field_name, env_name in env_map.items():
        raw = env.get(env_name)
        if raw is None or field_name not in fields:
            continue
        default = _field_default(fields[field_name])
        try:
            values[field_name] = coerce_env_value(raw, default)
        except ValueError as e:
            logger.warning(f"Ignoring invalid {env_name}={raw!r}: {e}")
    return values

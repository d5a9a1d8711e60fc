"""
Device design parameters.

Parameters are read from a plain ``key = value`` file. Every key has a
default, so a device can be analyzed without a parameter file at all. The
analyzer carries the parameters through to its result for the layout and
routing stages; it does not interpret them itself.
"""
from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class ParameterError(Exception):
    """Raised when a parameter file cannot be read or holds bad values."""


@dataclass
class Parameters:
    """Design parameters, lengths in micrometers."""

    max_device_width: int = 76200
    max_device_height: int = 25400
    channel_width: int = 100
    channel_spacing: int = 100
    port_spacing: int = 500
    component_spacing: int = 1000
    port_radius: int = 700

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, Any], source: str = "<mapping>"
    ) -> "Parameters":
        """Build parameters from already-parsed values.

        Keys are normalized like parameter-file keys. Unlike the file loader,
        unknown keys are rejected, since a mapping has no line to point a
        warning at.

        Raises:
            ParameterError: On unknown keys, non-integer or negative values.
        """
        known = {f.name for f in fields(cls)}
        converted: Dict[str, int] = {}
        errors: List[str] = []

        for key, value in values.items():
            name = normalize_key(str(key))
            if name not in known:
                errors.append(f"unknown parameter '{key}'")
            elif isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"'{key}' must be an integer, got {value!r}")
            elif value < 0:
                errors.append(f"'{key}' must not be negative")
            else:
                converted[name] = value

        if errors:
            raise ParameterError(f"Invalid parameters from {source}: " + "; ".join(errors))
        return cls(**converted)


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def normalize_key(key: str) -> str:
    """Map ``channelWidth``, ``Channel-Width`` and friends to ``channel_width``."""
    key = key.strip().replace("-", "_")
    if not key.isupper():
        key = _CAMEL_BOUNDARY.sub("_", key)
    return re.sub("_+", "_", key).lower()


def parse_parameters(raw_lines: List[str], source: str = "<string>") -> Parameters:
    """Parse ``key = value`` lines into :class:`Parameters`.

    - Skips blank and comment lines.
    - Requires exactly one '=' per line.
    - Unknown keys are logged and ignored.
    - Values must be non-negative integers.
    """
    known = {f.name for f in fields(Parameters)}
    values: Dict[str, int] = {}
    errors: List[str] = []

    for lineno, raw in enumerate(raw_lines, start=1):
        stripped = raw.split("#", 1)[0].strip()
        if not stripped:
            continue

        if stripped.count("=") != 1:
            errors.append(
                f"Line {lineno}: syntax error - expected single '=' in assignment"
            )
            continue

        key, val = (part.strip() for part in stripped.split("="))
        if not key or not val:
            errors.append(f"Line {lineno}: syntax error - missing key or value")
            continue

        name = normalize_key(key)
        if name not in known:
            logger.warning("%s:%d: ignoring unknown parameter '%s'", source, lineno, key)
            continue

        try:
            number = int(val)
        except ValueError:
            errors.append(f"Line {lineno}: '{key}' must be an integer, got '{val}'")
            continue
        if number < 0:
            errors.append(f"Line {lineno}: '{key}' must not be negative")
            continue
        values[name] = number

    if errors:
        raise ParameterError(f"Invalid parameter file {source}: " + "; ".join(errors))

    params = Parameters(**values)
    logger.debug("Parameters from %s: %s", source, params)
    return params


def load_parameters(path: Optional[Union[str, Path]] = None) -> Parameters:
    """Load parameters from ``path``, or return the defaults when it is None."""
    if path is None:
        logger.debug("No parameter file given, using defaults")
        return Parameters()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_lines = f.readlines()
    except OSError as exc:
        raise ParameterError(f"Cannot read parameter file {path}: {exc}") from exc

    return parse_parameters(raw_lines, source=str(path))

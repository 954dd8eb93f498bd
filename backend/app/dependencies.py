"""
Shared dependencies for the ration audit API.

- Active ration constants, built once from defaults plus environment overrides
- Audit identifiers
"""

import os
import uuid
from functools import lru_cache

from core.ration.config import DEFAULT_CONSTANTS
from middleware.logging_config import get_logger

logger = get_logger("app.dependencies")

# Environment variable -> constant name
CONSTANT_OVERRIDES = {
    "RATION_VOC_TOLERANCE_PERCENT": "voc_tolerance_percent",
    "RATION_SW_MINIMUM": "sw_minimum",
    "RATION_SW_WARNING_THRESHOLD": "sw_warning_threshold",
    "RATION_COVERAGE_OK_PERCENT": "coverage_ok_percent",
    "RATION_COVERAGE_WARNING_PERCENT": "coverage_warning_percent",
}


def load_constant_overrides(environ=None):
    """
    Read numeric constant overrides from the environment.

    Args:
        environ (Mapping): Environment to read, os.environ by default

    Returns:
        dict: constant name -> float value

    Raises:
        ValueError: if an override is not a number
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for env_name, constant_name in CONSTANT_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            overrides[constant_name] = float(raw)
        except ValueError:
            raise ValueError(f"{env_name} must be a number, got {raw!r}")
    return overrides


@lru_cache(maxsize=1)
def get_ration_constants():
    """Constants used by every request; built once per process."""
    overrides = load_constant_overrides()
    if overrides:
        logger.info(f"Applying ration constant overrides: {overrides}")
        return DEFAULT_CONSTANTS.with_overrides(**overrides)
    return DEFAULT_CONSTANTS


def new_audit_id():
    return uuid.uuid4().hex[:12]

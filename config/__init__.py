"""
Config module - Customer-editable defaults for the exporter.
"""

from .settings import (
    DEFAULT_SETTINGS,
    DETAILED_REPORT_TYPE,
    PROVIDER_NAME,
    STORES_ENV_VAR,
)

__all__ = [
    'DEFAULT_SETTINGS',
    'DETAILED_REPORT_TYPE',
    'PROVIDER_NAME',
    'STORES_ENV_VAR',
]

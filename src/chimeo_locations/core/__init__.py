"""
Core utilities for the location reconciler.

Provides configuration management, logging and the error taxonomy.
"""

from .config import Config
from .logger import setup_logger, LoggerContext
from . import constants
from .date_utils import DateUtils
from .errors import (
    ReconciliationError,
    AddressUnavailable,
    GeocodeNotFound,
    GeocodeTransientFailure,
    GeocoderRejected,
    PersistenceFailure,
)

__all__ = [
    "Config",
    "setup_logger",
    "LoggerContext",
    "constants",
    "DateUtils",
    "ReconciliationError",
    "AddressUnavailable",
    "GeocodeNotFound",
    "GeocodeTransientFailure",
    "GeocoderRejected",
    "PersistenceFailure",
]

"""
Business logic services for the location reconciler.

Services orchestrate API and geocoder calls and provide higher-level functionality.
"""

from .geocoding import GeocodingClient
from .reconciliation import CancellationToken, ReconciliationCoordinator

__all__ = [
    "GeocodingClient",
    "CancellationToken",
    "ReconciliationCoordinator",
]

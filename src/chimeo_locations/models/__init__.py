"""
Data models for the location reconciler.

Contains DTOs for coordinates, organizations and reconciliation outcomes.
"""

from .location import Coordinate, Location, GeocodeResult
from .organization import Organization
from .reconciliation import OutcomeStatus, OrganizationOutcome, ReconciliationReport

__all__ = [
    "Coordinate",
    "Location",
    "GeocodeResult",
    "Organization",
    "OutcomeStatus",
    "OrganizationOutcome",
    "ReconciliationReport",
]

"""
Coordinate drift detection.

Decides whether a freshly geocoded coordinate should replace the stored one.
The distance threshold is a heuristic: two geocoders, or the same geocoder on
different days, commonly disagree by tens of meters for the same address.
"""

import logging
from typing import Optional

from geopy.distance import great_circle  # type: ignore

from ..core import constants
from ..models import Coordinate


class DriftDetector:
    """Compare stored and geocoded coordinates."""

    def __init__(
        self,
        threshold_meters: float = constants.DEFAULT_DRIFT_THRESHOLD_METERS,
        treat_sentinel_as_missing: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize drift detector.

        Args:
            threshold_meters: Drift above this distance requires an update.
                              A drift of exactly this distance does not.
            treat_sentinel_as_missing: Treat a stored (0, 0) as no coordinate
            logger: Logger instance
        """
        if threshold_meters < 0:
            raise ValueError("threshold_meters must not be negative")

        self.threshold_meters = float(threshold_meters)
        self.treat_sentinel_as_missing = treat_sentinel_as_missing
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def distance_meters(a: Coordinate, b: Coordinate) -> float:
        """Great-circle distance between two coordinates in meters."""
        return great_circle(a.as_tuple(), b.as_tuple()).meters

    def is_missing(self, stored: Optional[Coordinate]) -> bool:
        if stored is None or not stored.is_valid:
            return True
        return self.treat_sentinel_as_missing and stored.is_sentinel

    def drift(self, stored: Optional[Coordinate], geocoded: Coordinate) -> Optional[float]:
        """Drift in meters, or None when there is no usable stored coordinate."""
        if self.is_missing(stored):
            return None
        return self.distance_meters(stored, geocoded)

    def needs_update(self, stored: Optional[Coordinate], geocoded: Coordinate) -> bool:
        """
        Check whether the stored coordinate should be replaced.

        Args:
            stored: Coordinate currently stored for the organization
            geocoded: Coordinate just returned by the geocoder

        Returns:
            True if the stored coordinate is missing or drifted beyond the threshold
        """
        distance = self.drift(stored, geocoded)
        if distance is None:
            self.logger.debug("Stored coordinate missing - update required")
            return True

        update = distance > self.threshold_meters
        self.logger.debug(
            f"Drift {distance:.1f}m (threshold {self.threshold_meters:.1f}m) - "
            f"{'update required' if update else 'no update needed'}"
        )
        return update

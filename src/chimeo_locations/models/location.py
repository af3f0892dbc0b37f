"""
Location data models.

Contains DTOs for coordinates, postal locations and geocoder results.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..core import constants


@dataclass(frozen=True)
class Coordinate:
    """WGS84 coordinate in degrees."""

    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        """True when both components are inside their WGS84 ranges."""
        return (
            constants.MIN_LATITUDE <= self.latitude <= constants.MAX_LATITUDE
            and constants.MIN_LONGITUDE <= self.longitude <= constants.MAX_LONGITUDE
        )

    @property
    def is_sentinel(self) -> bool:
        """True for the legacy (0.0, 0.0) 'no coordinate' marker."""
        return (
            self.latitude == constants.SENTINEL_LATITUDE
            and self.longitude == constants.SENTINEL_LONGITUDE
        )

    def as_tuple(self):
        return (self.latitude, self.longitude)

    @classmethod
    def from_values(
        cls,
        latitude: Any,
        longitude: Any,
        treat_zero_as_missing: bool = True
    ) -> Optional["Coordinate"]:
        """
        Build a coordinate from raw stored values.

        Returns None when either value is missing or non-numeric, when the
        pair is out of range, or when it is the legacy sentinel and
        treat_zero_as_missing is set.
        """
        if isinstance(latitude, bool) or isinstance(longitude, bool):
            return None
        try:
            coordinate = cls(float(latitude), float(longitude))
        except (TypeError, ValueError):
            return None

        if not coordinate.is_valid:
            return None
        if treat_zero_as_missing and coordinate.is_sentinel:
            return None
        return coordinate

    def __str__(self) -> str:
        return f"({self.latitude:.6f}, {self.longitude:.6f})"


@dataclass(frozen=True)
class Location:
    """Postal location of an organization with an optional coordinate."""

    coordinate: Optional[Coordinate] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @property
    def has_coordinate(self) -> bool:
        return self.coordinate is not None

    @property
    def full_address(self) -> str:
        """Non-empty components joined with ', ' (empty string when none)."""
        parts = [
            value.strip()
            for value in (self.address, self.city, self.state, self.zip_code)
            if value and value.strip()
        ]
        return constants.ADDRESS_SEPARATOR.join(parts)

    def to_document_fields(self) -> Dict[str, Any]:
        """
        Plain dict in the shape stored under an organization's 'location' field.

        Absent strings are written as empty strings, matching what the
        mobile client writes. A missing coordinate is written as the legacy
        sentinel so older clients can still decode the document.
        """
        coordinate = self.coordinate or Coordinate(
            constants.SENTINEL_LATITUDE, constants.SENTINEL_LONGITUDE
        )
        return {
            "latitude": float(coordinate.latitude),
            "longitude": float(coordinate.longitude),
            "address": self.address or "",
            "city": self.city or "",
            "state": self.state or "",
            "zipCode": self.zip_code or "",
        }

    @classmethod
    def from_document_fields(
        cls,
        fields: Dict[str, Any],
        treat_zero_as_missing: bool = True
    ) -> "Location":
        """Build from a decoded 'location' map."""
        return cls(
            coordinate=Coordinate.from_values(
                fields.get("latitude"),
                fields.get("longitude"),
                treat_zero_as_missing=treat_zero_as_missing
            ),
            address=_optional_string(fields.get("address")),
            city=_optional_string(fields.get("city")),
            state=_optional_string(fields.get("state")),
            zip_code=_optional_string(fields.get("zipCode")),
        )


@dataclass(frozen=True)
class GeocodeResult:
    """Coordinate and normalized address components returned by a geocoder."""

    coordinate: Coordinate
    query: str
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    display_name: Optional[str] = None


def _optional_string(value: Any) -> Optional[str]:
    """Stored strings with only whitespace count as absent."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None

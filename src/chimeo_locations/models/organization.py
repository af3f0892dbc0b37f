"""
Organization data models.

Contains DTOs for organization documents stored in Firestore.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Dict, Any

from .location import Coordinate, Location, _optional_string


@dataclass(frozen=True)
class Organization:
    """Organization document from the Chimeo directory."""

    id: str
    name: str
    type: str = "business"
    description: Optional[str] = None
    location: Location = field(default_factory=Location)
    verified: bool = False
    follower_count: int = 0
    logo_url: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    admin_ids: Dict[str, bool] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Legacy flat address fields written by older clients
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        return self.location.coordinate

    def is_admin(self, user_id: Optional[str]) -> bool:
        """True only when the admin map explicitly grants membership to the user."""
        if not user_id:
            return False
        return self.admin_ids.get(user_id) is True

    def with_location(self, location: Location, updated_at: Optional[datetime] = None) -> "Organization":
        """Copy of this organization with a new location."""
        return replace(self, location=location, updated_at=updated_at or self.updated_at)

    @classmethod
    def from_document(
        cls,
        document_id: str,
        data: Dict[str, Any],
        treat_zero_as_missing: bool = True
    ) -> "Organization":
        """
        Build an organization from decoded document fields.

        The nested 'location' map is preferred; documents without one fall
        back to top-level latitude/longitude fields.

        Args:
            document_id: Firestore document ID
            data: Decoded document fields
            treat_zero_as_missing: Load a stored (0, 0) as 'no coordinate'

        Returns:
            Organization instance
        """
        location_data = data.get("location")
        if isinstance(location_data, dict):
            location = Location.from_document_fields(
                location_data, treat_zero_as_missing=treat_zero_as_missing
            )
            if location.coordinate is None and "latitude" not in location_data:
                location = replace(location, coordinate=Coordinate.from_values(
                    data.get("latitude"),
                    data.get("longitude"),
                    treat_zero_as_missing=treat_zero_as_missing
                ))
        else:
            location = Location(coordinate=Coordinate.from_values(
                data.get("latitude"),
                data.get("longitude"),
                treat_zero_as_missing=treat_zero_as_missing
            ))

        admin_ids = data.get("adminIds") or {}
        if not isinstance(admin_ids, dict):
            admin_ids = {}

        follower_count = data.get("followerCount")
        if not isinstance(follower_count, int) or isinstance(follower_count, bool):
            follower_count = 0

        return cls(
            id=document_id,
            name=data.get("name") or "Unknown Organization",
            type=data.get("type") or "business",
            description=data.get("description"),
            location=location,
            verified=data.get("verified") is True,
            follower_count=follower_count,
            logo_url=data.get("logoURL"),
            website=data.get("website"),
            phone=data.get("phone"),
            email=data.get("email"),
            admin_ids={str(k): v for k, v in admin_ids.items()},
            created_at=_as_datetime(data.get("createdAt")),
            updated_at=_as_datetime(data.get("updatedAt")),
            address=_optional_string(data.get("address")),
            city=_optional_string(data.get("city")),
            state=_optional_string(data.get("state")),
            zip_code=_optional_string(data.get("zipCode")),
        )


def _as_datetime(value: Any) -> Optional[datetime]:
    return value if isinstance(value, datetime) else None

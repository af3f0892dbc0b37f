"""
Address normalization.

Builds the single address string sent to the geocoder from an organization's
nested location fields and its legacy flat fields.
"""

import logging
from typing import Dict, Optional

from ..core import constants
from ..models import Organization


class AddressNormalizer:
    """Assemble a geocoding query from optional address components."""

    def __init__(
        self,
        separator: str = constants.ADDRESS_SEPARATOR,
        logger: Optional[logging.Logger] = None
    ):
        self.separator = separator
        self.logger = logger or logging.getLogger(__name__)

    def components(self, organization: Organization) -> Dict[str, str]:
        """
        Resolve each address component, preferring the nested location.

        Returns:
            Mapping of component key (address, city, state, zipCode) to its
            stripped value; unusable components map to ''.
        """
        nested = organization.location
        candidates = {
            "address": (nested.address, organization.address),
            "city": (nested.city, organization.city),
            "state": (nested.state, organization.state),
            "zipCode": (nested.zip_code, organization.zip_code),
        }

        resolved = {}
        for key in constants.ADDRESS_COMPONENTS:
            preferred, fallback = candidates[key]
            resolved[key] = _clean(preferred) or _clean(fallback)
        return resolved

    def normalize(self, organization: Organization) -> str:
        """
        Format the organization's address for a geocoding query.

        Returns an empty string when no component is usable; absence of data
        is not an error.
        """
        parts = [value for value in self.components(organization).values() if value]
        address = self.separator.join(parts)
        if not address:
            self.logger.debug(f"No usable address components for {organization.name}")
        return address


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""

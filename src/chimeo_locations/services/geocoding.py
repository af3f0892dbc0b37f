"""
Geocoding service.

Wraps a geopy geocoder (Nominatim by default) behind a rate limiter and maps
provider errors onto the reconciliation error taxonomy.
"""

import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, Optional

from geopy.exc import (  # type: ignore
    GeocoderAuthenticationFailure,
    GeocoderInsufficientPrivileges,
    GeocoderQueryError,
    GeocoderServiceError,
)
from geopy.extra.rate_limiter import RateLimiter  # type: ignore
from geopy.geocoders import Nominatim, get_geocoder_for_service  # type: ignore

from ..core import constants
from ..core.errors import (
    AddressUnavailable,
    GeocodeNotFound,
    GeocodeTransientFailure,
    GeocoderRejected,
)
from ..models import Coordinate, GeocodeResult


class GeocodingClient:
    """Forward and reverse geocoding with retry and rate limiting."""

    def __init__(
        self,
        geocoder: Any = None,
        provider: str = constants.DEFAULT_GEOCODER_PROVIDER,
        user_agent: Optional[str] = None,
        timeout: int = constants.DEFAULT_GEOCODER_TIMEOUT,
        min_delay_seconds: float = constants.DEFAULT_MIN_DELAY_SECONDS,
        max_retries: int = constants.DEFAULT_GEOCODER_MAX_RETRIES,
        error_wait_seconds: float = constants.DEFAULT_ERROR_WAIT_SECONDS,
        options: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize geocoding client.

        Args:
            geocoder: Ready geopy geocoder. If None, one is built from provider.
            provider: geopy service name (e.g., 'nominatim', 'arcgis', 'googlev3')
            user_agent: User agent sent to the provider
            timeout: Provider request timeout in seconds
            min_delay_seconds: Minimum delay between provider calls
            max_retries: Retries for transient provider errors
            error_wait_seconds: Wait before retrying after an error
            options: Extra provider constructor arguments (api_key, domain, ...)
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

        if geocoder is None:
            geocoder_cls = get_geocoder_for_service(provider)
            kwargs = dict(options or {})
            kwargs.setdefault("user_agent", user_agent)
            kwargs.setdefault("timeout", timeout)
            geocoder = geocoder_cls(**kwargs)
            self.logger.debug(f"Using geocoder {geocoder_cls.__name__}")

        self.geocoder = geocoder

        # Nominatim only returns structured address parts when asked
        self.query_options: Dict[str, Any] = (
            {"addressdetails": True} if isinstance(geocoder, Nominatim) else {}
        )

        limiter_options = dict(
            min_delay_seconds=min_delay_seconds,
            max_retries=max_retries,
            error_wait_seconds=error_wait_seconds,
            swallow_exceptions=False,
        )
        # RateLimiter retries every GeocoderServiceError, so terminal errors are
        # converted before it sees them
        self._geocode = RateLimiter(
            functools.partial(self._call_provider, geocoder.geocode), **limiter_options
        )
        self._reverse = RateLimiter(
            functools.partial(self._call_provider, geocoder.reverse), **limiter_options
        )

    def _call_provider(self, method: Any, query: str, **kwargs) -> Any:
        try:
            return method(query, **kwargs)
        except GeocoderQueryError as e:
            raise GeocodeNotFound(f"Geocoder rejected query '{query}': {e}") from e
        except (GeocoderAuthenticationFailure, GeocoderInsufficientPrivileges) as e:
            raise GeocoderRejected(f"Geocoder refused access: {e}") from e

    def geocode(self, address: str) -> GeocodeResult:
        """
        Geocode a free-text address.

        Args:
            address: Formatted address string

        Returns:
            Coordinate and normalized address components of the first match

        Raises:
            AddressUnavailable: If the address is blank
            GeocodeNotFound: If no placemark matches
            GeocodeTransientFailure: If the provider kept failing after retries
            GeocoderRejected: If the provider refused the credentials
        """
        if not address or not address.strip():
            raise AddressUnavailable("Cannot geocode an empty address")

        self.logger.info(f"Geocoding address: {address}")

        try:
            place = self._geocode(address, exactly_one=True, **self.query_options)
        except GeocoderServiceError as e:
            raise GeocodeTransientFailure(f"Geocoding failed for '{address}': {e}") from e

        if place is None:
            raise GeocodeNotFound(f"No placemarks found for address '{address}'")

        result = self._to_result(place, query=address)
        self.logger.debug(f"Geocoded '{address}' to {result.coordinate}")
        return result

    def reverse(self, coordinate: Coordinate) -> GeocodeResult:
        """
        Reverse geocode a coordinate to address components.

        Raises:
            GeocodeNotFound: If nothing is known at the coordinate
            GeocodeTransientFailure: If the provider kept failing after retries
            GeocoderRejected: If the provider refused the credentials
        """
        query = f"{coordinate.latitude}, {coordinate.longitude}"
        self.logger.info(f"Reverse geocoding {coordinate}")

        try:
            place = self._reverse(query, exactly_one=True)
        except GeocoderServiceError as e:
            raise GeocodeTransientFailure(f"Reverse geocoding failed for {coordinate}: {e}") from e

        if place is None:
            raise GeocodeNotFound(f"No placemarks found at {coordinate}")

        # Keep the queried coordinate; providers snap to the nearest feature
        result = self._to_result(place, query=query)
        return GeocodeResult(
            coordinate=coordinate,
            query=query,
            city=result.city,
            state=result.state,
            postal_code=result.postal_code,
            display_name=result.display_name,
        )

    def geocode_many(
        self,
        addresses: Iterable[str],
        max_workers: int = constants.DEFAULT_BATCH_WORKERS
    ) -> Dict[str, GeocodeResult]:
        """
        Geocode several addresses with bounded concurrency.

        Unresolved addresses are logged and left out of the result; a refused
        geocoder configuration propagates.

        Returns:
            Mapping of address to result for the addresses that resolved
        """
        unique = list(dict.fromkeys(a for a in addresses if a and a.strip()))
        results: Dict[str, GeocodeResult] = {}
        if not unique:
            return results

        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            futures = {address: executor.submit(self.geocode, address) for address in unique}
            for address, future in futures.items():
                try:
                    results[address] = future.result()
                except (GeocodeNotFound, GeocodeTransientFailure) as e:
                    self.logger.warning(f"Skipping address '{address}': {e}")

        self.logger.info(f"Geocoded {len(results)}/{len(unique)} addresses")
        return results

    @staticmethod
    def _to_result(place: Any, query: str) -> GeocodeResult:
        """Convert a geopy Location to a GeocodeResult."""
        raw = getattr(place, "raw", None) or {}
        details = raw.get("address") if isinstance(raw.get("address"), dict) else {}

        city = next((details[key] for key in constants.LOCALITY_KEYS if details.get(key)), None)

        # 'US-TX' -> 'TX'; matches the abbreviations users type
        state = None
        iso_code = details.get("ISO3166-2-lvl4")
        if iso_code and "-" in iso_code:
            state = iso_code.split("-", 1)[1]
        elif details.get("state"):
            state = details["state"]

        return GeocodeResult(
            coordinate=Coordinate(float(place.latitude), float(place.longitude)),
            query=query,
            city=city,
            state=state,
            postal_code=details.get("postcode"),
            display_name=getattr(place, "address", None),
        )

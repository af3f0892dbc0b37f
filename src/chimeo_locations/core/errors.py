"""
Error taxonomy for location reconciliation.

Retryable errors are worth another attempt on a later run; terminal ones
will fail the same way until the organization's data changes.
"""


class ReconciliationError(Exception):
    """Base class for reconciliation errors."""

    retryable = False


class AddressUnavailable(ReconciliationError):
    """Organization has no usable address components."""


class GeocodeNotFound(ReconciliationError):
    """Geocoder resolved no placemark for the address."""


class GeocodeTransientFailure(ReconciliationError):
    """Geocoder failed because of a network or service problem."""

    retryable = True


class PersistenceFailure(ReconciliationError):
    """Writing the reconciled location to the data store failed."""

    retryable = True


class GeocoderRejected(ReconciliationError):
    """Geocoder refused the credentials or access for every request.

    Not caught per organization: the run cannot succeed until the
    geocoding configuration is fixed.
    """

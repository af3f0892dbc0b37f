"""
Organization location reconciliation service.

Normalizes each organization's address, geocodes it, checks drift against the
stored coordinate and persists the new location when needed.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from ..algorithms import AddressNormalizer, DriftDetector
from ..core import constants
from ..core.date_utils import DateUtils
from ..core.errors import (
    AddressUnavailable,
    GeocodeNotFound,
    GeocodeTransientFailure,
    PersistenceFailure,
)
from ..models import (
    GeocodeResult,
    Location,
    Organization,
    OrganizationOutcome,
    OutcomeStatus,
    ReconciliationReport,
)


class CancellationToken:
    """Cooperative cancellation flag shared by a reconciliation run and its caller."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ReconciliationCoordinator:
    """Reconcile stored organization coordinates with their addresses."""

    def __init__(
        self,
        store: Any,
        geocoder: Any,
        normalizer: Optional[AddressNormalizer] = None,
        drift_detector: Optional[DriftDetector] = None,
        max_workers: int = 1,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize reconciliation coordinator.

        Args:
            store: Data store with update_organization_location(organization_id, location),
                   raising PersistenceFailure when the write fails
            geocoder: Geocoding client with geocode(address) -> GeocodeResult
            normalizer: Address normalizer
            drift_detector: Drift detector
            max_workers: Organizations processed concurrently (1 = sequential)
            dry_run: Compute outcomes without writing or mutating
            logger: Logger instance
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self.store = store
        self.geocoder = geocoder
        self.logger = logger or logging.getLogger(__name__)
        self.normalizer = normalizer or AddressNormalizer(logger=self.logger)
        self.drift_detector = drift_detector or DriftDetector(logger=self.logger)
        self.max_workers = max_workers
        self.dry_run = dry_run

        self._list_lock = threading.Lock()
        self._locks_guard = threading.Lock()
        self._write_locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, organization_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._write_locks.get(organization_id)
            if lock is None:
                lock = self._write_locks[organization_id] = threading.Lock()
            return lock

    def _snapshot(self, organizations: List[Organization], index: int) -> Organization:
        with self._list_lock:
            return organizations[index]

    def _replace(self, organizations: List[Organization], index: int, organization: Organization) -> None:
        with self._list_lock:
            organizations[index] = organization

    def _interrupt(self, token: CancellationToken) -> None:
        if not token.cancelled:
            self.logger.warning("Interrupted, cancelling remaining organizations")
            token.cancel()

    def _cancelled_outcome(self, organizations: List[Organization], index: int) -> OrganizationOutcome:
        organization = self._snapshot(organizations, index)
        return OrganizationOutcome(
            organization_id=organization.id,
            name=organization.name,
            status=OutcomeStatus.CANCELLED,
            previous=organization.coordinate,
        )

    def select_candidates(
        self,
        organizations: List[Organization],
        mode: str = constants.MODE_MISSING
    ) -> List[int]:
        """
        Pick the organizations a run should process.

        Args:
            organizations: In-memory organizations
            mode: 'missing' for organizations without a usable coordinate, 'all' for every one

        Returns:
            Indices into organizations
        """
        if mode not in constants.RECONCILIATION_MODES:
            raise ValueError(
                f"Invalid mode '{mode}'. Expected one of: {', '.join(constants.RECONCILIATION_MODES)}"
            )

        if mode == constants.MODE_ALL:
            return list(range(len(organizations)))

        return [
            i for i, organization in enumerate(organizations)
            if self.drift_detector.is_missing(organization.coordinate)
        ]

    def reconcile(
        self,
        organizations: List[Organization],
        mode: str = constants.MODE_MISSING,
        cancel_token: Optional[CancellationToken] = None
    ) -> ReconciliationReport:
        """
        Run one reconciliation pass.

        Updated organizations replace their entries in the given list.

        Args:
            organizations: In-memory organizations (updated in place)
            mode: 'missing' or 'all'
            cancel_token: Token checked before each geocode and before each write

        Returns:
            Report with one outcome per processed organization, in input order
        """
        token = cancel_token or CancellationToken()
        indices = self.select_candidates(organizations, mode)

        self.logger.info(
            f"Reconciling {len(indices)} of {len(organizations)} organizations "
            f"(mode={mode}, workers={self.max_workers}, dry_run={self.dry_run})"
        )

        outcomes: List[OrganizationOutcome] = []
        if self.max_workers == 1 or len(indices) <= 1:
            for i in indices:
                try:
                    outcomes.append(self.reconcile_organization(organizations, i, token))
                except KeyboardInterrupt:
                    self._interrupt(token)
                    outcomes.append(self._cancelled_outcome(organizations, i))
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(self.reconcile_organization, organizations, i, token)
                    for i in indices
                ]
                for i, future in zip(indices, futures):
                    try:
                        outcomes.append(future.result())
                    except KeyboardInterrupt:
                        self._interrupt(token)
                        # In-flight workers check the token before writing
                        try:
                            outcomes.append(future.result())
                        except KeyboardInterrupt:
                            outcomes.append(self._cancelled_outcome(organizations, i))
                    except BaseException:
                        # Stop queued and in-flight workers from writing
                        token.cancel()
                        raise

        report = ReconciliationReport(outcomes=outcomes, dry_run=self.dry_run)
        self.log_summary(report)
        return report

    def reconcile_organization(
        self,
        organizations: List[Organization],
        index: int,
        cancel_token: Optional[CancellationToken] = None
    ) -> OrganizationOutcome:
        """
        Reconcile a single organization.

        Args:
            organizations: In-memory organizations
            index: Position of the organization to process
            cancel_token: Cancellation token

        Returns:
            Outcome for the organization
        """
        token = cancel_token or CancellationToken()
        organization = self._snapshot(organizations, index)
        outcome = self._cancelled_outcome(organizations, index)

        if token.cancelled:
            self.logger.info(f"Cancelled before processing {organization.name}")
            return outcome

        address = self.normalizer.normalize(organization)
        outcome.address = address
        if not address:
            self.logger.info(f"Skipping {organization.name}: no address available")
            outcome.status = OutcomeStatus.ADDRESS_UNAVAILABLE
            return outcome

        try:
            result = self.geocoder.geocode(address)
        except AddressUnavailable as e:
            self.logger.info(f"Skipping {organization.name}: {e}")
            outcome.status = OutcomeStatus.ADDRESS_UNAVAILABLE
            outcome.error = str(e)
            return outcome
        except GeocodeNotFound as e:
            self.logger.warning(f"Skipping {organization.name}: {e}")
            outcome.status = OutcomeStatus.NOT_FOUND
            outcome.error = str(e)
            return outcome
        except GeocodeTransientFailure as e:
            self.logger.warning(f"Skipping {organization.name} (retryable): {e}")
            outcome.status = OutcomeStatus.TRANSIENT_FAILURE
            outcome.error = str(e)
            return outcome

        outcome.geocoded = result.coordinate

        # A cancelled run must not write results that arrive late
        if token.cancelled:
            self.logger.info(f"Cancelled before saving {organization.name}")
            return outcome

        with self._lock_for(organization.id):
            # Re-read: a concurrent pass may already have updated this entry
            current = self._snapshot(organizations, index)
            outcome.previous = current.coordinate
            outcome.drift_meters = self.drift_detector.drift(current.coordinate, result.coordinate)

            if not self.drift_detector.needs_update(current.coordinate, result.coordinate):
                self.logger.info(
                    f"{current.name}: coordinate within "
                    f"{self.drift_detector.threshold_meters:.0f}m of geocoded address"
                )
                outcome.status = OutcomeStatus.UNCHANGED
                return outcome

            location = self.build_location(current, result)

            if self.dry_run:
                self.logger.info(f"[dry run] Would update {current.name} to {result.coordinate}")
                outcome.status = OutcomeStatus.UPDATED
                return outcome

            try:
                self.store.update_organization_location(current.id, location)
            except PersistenceFailure as e:
                self.logger.error(f"Failed to save coordinates for {current.name}: {e}")
                outcome.status = OutcomeStatus.PERSISTENCE_FAILURE
                outcome.error = str(e)
                return outcome

            self._replace(
                organizations,
                index,
                current.with_location(location, updated_at=DateUtils.utc_now())
            )

        self.logger.info(f"Updated {organization.name} coordinates to {result.coordinate}")
        outcome.status = OutcomeStatus.UPDATED
        return outcome

    def build_location(self, organization: Organization, result: GeocodeResult) -> Location:
        """
        Location to persist for a geocoded organization.

        Keeps the organization's own street line; city, state and postal code
        come from the geocoder, falling back to the organization's values.
        """
        components = self.normalizer.components(organization)
        return Location(
            coordinate=result.coordinate,
            address=components["address"] or None,
            city=result.city or components["city"] or None,
            state=result.state or components["state"] or None,
            zip_code=result.postal_code or components["zipCode"] or None,
        )

    def log_summary(self, report: ReconciliationReport) -> None:
        """
        Log summary of a reconciliation run.

        Args:
            report: Report to summarize
        """
        counts = report.counts()

        self.logger.info("=" * 60)
        self.logger.info("Reconciliation Summary" + (" (dry run)" if report.dry_run else ""))
        self.logger.info("=" * 60)
        self.logger.info(f"Processed organizations: {len(report)}")
        for status in OutcomeStatus:
            self.logger.info(f"{status.value}: {counts.get(status, 0)}")

        if report.unresolved_count > 0:
            self.logger.warning(f"Unresolved organizations: {report.unresolved_count}")
            for outcome in report.failed:
                kind = "retryable" if outcome.status.retryable else "terminal"
                self.logger.warning(f"  - {outcome.name} [{outcome.status.value}, {kind}]")

        self.logger.info("=" * 60)

"""
Reconciliation result models.

Contains the per-organization outcome and the report returned by a run.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict

from .location import Coordinate


class OutcomeStatus(str, Enum):
    """What happened to one organization during a reconciliation run."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    ADDRESS_UNAVAILABLE = "address_unavailable"
    NOT_FOUND = "not_found"
    TRANSIENT_FAILURE = "transient_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    CANCELLED = "cancelled"

    @property
    def retryable(self) -> bool:
        return self in (
            OutcomeStatus.TRANSIENT_FAILURE,
            OutcomeStatus.PERSISTENCE_FAILURE,
            OutcomeStatus.CANCELLED,
        )

    @property
    def terminal(self) -> bool:
        return self in (OutcomeStatus.NOT_FOUND, OutcomeStatus.ADDRESS_UNAVAILABLE)

    @property
    def resolved(self) -> bool:
        return self in (OutcomeStatus.UPDATED, OutcomeStatus.UNCHANGED)


@dataclass
class OrganizationOutcome:
    """Outcome of reconciling a single organization."""

    organization_id: str
    name: str
    status: OutcomeStatus
    address: str = ""
    previous: Optional[Coordinate] = None
    geocoded: Optional[Coordinate] = None
    drift_meters: Optional[float] = None
    error: Optional[str] = None


@dataclass
class ReconciliationReport:
    """All outcomes of one reconciliation run, in input order."""

    outcomes: List[OrganizationOutcome] = field(default_factory=list)
    dry_run: bool = False

    def with_status(self, *statuses: OutcomeStatus) -> List[OrganizationOutcome]:
        return [o for o in self.outcomes if o.status in statuses]

    @property
    def updated(self) -> List[OrganizationOutcome]:
        return self.with_status(OutcomeStatus.UPDATED)

    @property
    def unchanged(self) -> List[OrganizationOutcome]:
        return self.with_status(OutcomeStatus.UNCHANGED)

    @property
    def skipped(self) -> List[OrganizationOutcome]:
        return self.with_status(OutcomeStatus.ADDRESS_UNAVAILABLE)

    @property
    def failed(self) -> List[OrganizationOutcome]:
        return [o for o in self.outcomes if not o.status.resolved]

    @property
    def retryable(self) -> List[OrganizationOutcome]:
        return [o for o in self.outcomes if o.status.retryable]

    @property
    def terminal(self) -> List[OrganizationOutcome]:
        return [o for o in self.outcomes if o.status.terminal]

    @property
    def unresolved_count(self) -> int:
        """Organizations that still lack a confirmed coordinate after this run."""
        return len(self.failed)

    def counts(self) -> Dict[OutcomeStatus, int]:
        return dict(Counter(o.status for o in self.outcomes))

    def __len__(self) -> int:
        return len(self.outcomes)

"""
Tests for the reconciliation coordinator.

The data store and geocoder are Mocks; the normalizer and drift detector are real.
"""

import threading
from unittest.mock import Mock

import pytest  # type: ignore

from src.chimeo_locations.algorithms import DriftDetector
from src.chimeo_locations.core.errors import (
    GeocodeNotFound,
    GeocodeTransientFailure,
    GeocoderRejected,
    PersistenceFailure,
)
from src.chimeo_locations.models import Coordinate, GeocodeResult, OutcomeStatus
from src.chimeo_locations.services.reconciliation import (
    CancellationToken,
    ReconciliationCoordinator,
)

DENTON = Coordinate(33.2148, -97.1331)
ALLEN = Coordinate(33.1032, -96.6705)
DENTON_ADDRESS = "123 Main St, Denton, TX, 76201"


def result_for(address, coordinate, city="Denton", state="TX", postal_code="76201"):
    return GeocodeResult(
        coordinate=coordinate, query=address, city=city, state=state, postal_code=postal_code
    )


@pytest.fixture
def store():
    return Mock(spec=["update_organization_location"])


@pytest.fixture
def geocoder():
    return Mock(spec=["geocode"])


@pytest.fixture
def logger():
    return Mock()


@pytest.fixture
def coordinator(store, geocoder, logger):
    return ReconciliationCoordinator(store=store, geocoder=geocoder, logger=logger)


@pytest.fixture
def denton_org(make_organization):
    return make_organization(
        org_id="denton",
        address="123 Main St", city="Denton", state="TX", zip_code="76201"
    )


class TestCandidateSelection:

    def test_missing_mode(self, coordinator, make_organization):
        orgs = [
            make_organization(org_id="a", coordinate=DENTON),
            make_organization(org_id="b"),
            make_organization(org_id="c", coordinate=Coordinate(0.0, 0.0)),
        ]
        assert coordinator.select_candidates(orgs, "missing") == [1, 2]

    def test_all_mode(self, coordinator, make_organization):
        orgs = [make_organization(org_id="a", coordinate=DENTON), make_organization(org_id="b")]
        assert coordinator.select_candidates(orgs, "all") == [0, 1]

    def test_invalid_mode(self, coordinator):
        with pytest.raises(ValueError):
            coordinator.select_candidates([], "sometimes")


class TestReconcile:

    def test_missing_coordinate_written_once(self, coordinator, store, geocoder, denton_org):
        geocoder.geocode.return_value = result_for(DENTON_ADDRESS, DENTON)
        orgs = [denton_org]

        report = coordinator.reconcile(orgs)

        geocoder.geocode.assert_called_once_with(DENTON_ADDRESS)
        assert store.update_organization_location.call_count == 1
        org_id, location = store.update_organization_location.call_args[0]
        assert org_id == "denton"
        assert location.coordinate == DENTON
        assert location.address == "123 Main St"
        assert location.to_document_fields()["zipCode"] == "76201"

        assert [o.status for o in report.outcomes] == [OutcomeStatus.UPDATED]
        assert orgs[0].coordinate == DENTON
        assert orgs[0].updated_at is not None

    def test_identical_coordinate_not_written(self, coordinator, store, geocoder, make_organization):
        org = make_organization(
            coordinate=DENTON, address="123 Main St", city="Denton", state="TX", zip_code="76201"
        )
        geocoder.geocode.return_value = result_for(DENTON_ADDRESS, DENTON)

        report = coordinator.reconcile([org], mode="all")

        store.update_organization_location.assert_not_called()
        assert report.outcomes[0].status == OutcomeStatus.UNCHANGED
        assert report.outcomes[0].drift_meters == pytest.approx(0.0)

    def test_drifted_coordinate_written(self, coordinator, store, geocoder, make_organization):
        org = make_organization(coordinate=ALLEN, address="123 Main St", city="Denton")
        geocoder.geocode.return_value = result_for("123 Main St, Denton", DENTON)

        report = coordinator.reconcile([org], mode="all")

        assert store.update_organization_location.call_count == 1
        outcome = report.outcomes[0]
        assert outcome.status == OutcomeStatus.UPDATED
        assert outcome.previous == ALLEN
        assert outcome.geocoded == DENTON
        assert outcome.drift_meters > 40000

    def test_rerun_is_idempotent(self, coordinator, store, geocoder, denton_org):
        geocoder.geocode.return_value = result_for(DENTON_ADDRESS, DENTON)
        orgs = [denton_org]

        coordinator.reconcile(orgs, mode="all")
        second = coordinator.reconcile(orgs, mode="all")

        assert store.update_organization_location.call_count == 1
        assert second.outcomes[0].status == OutcomeStatus.UNCHANGED

    def test_empty_address_skips_geocoding(self, coordinator, store, geocoder, make_organization):
        org = make_organization(address="  ", flat={"city": ""})

        report = coordinator.reconcile([org])

        geocoder.geocode.assert_not_called()
        store.update_organization_location.assert_not_called()
        assert report.outcomes[0].status == OutcomeStatus.ADDRESS_UNAVAILABLE
        assert report.terminal == report.outcomes

    def test_not_found_logged_and_loop_continues(
        self, coordinator, store, geocoder, logger, make_organization
    ):
        missing = make_organization(org_id="missing", name="Ghost Org", address="1 Nowhere Ln")
        found = make_organization(org_id="found", address="123 Main St", city="Denton")

        def geocode(address):
            if address == "1 Nowhere Ln":
                raise GeocodeNotFound("No placemarks found")
            return result_for(address, DENTON)

        geocoder.geocode.side_effect = geocode

        report = coordinator.reconcile([missing, found])

        assert [o.status for o in report.outcomes] == [
            OutcomeStatus.NOT_FOUND, OutcomeStatus.UPDATED
        ]
        store.update_organization_location.assert_called_once()
        assert store.update_organization_location.call_args[0][0] == "found"

        skips = [
            c for c in logger.warning.call_args_list
            if c[0][0].startswith("Skipping Ghost Org")
        ]
        assert len(skips) == 1

    def test_transient_failure_is_retryable(self, coordinator, store, geocoder, denton_org):
        geocoder.geocode.side_effect = GeocodeTransientFailure("service down")

        report = coordinator.reconcile([denton_org])

        store.update_organization_location.assert_not_called()
        assert report.outcomes[0].status == OutcomeStatus.TRANSIENT_FAILURE
        assert report.retryable == report.outcomes
        assert report.unresolved_count == 1

    def test_persistence_failure_keeps_memory(self, coordinator, store, geocoder, denton_org):
        geocoder.geocode.return_value = result_for(DENTON_ADDRESS, DENTON)
        store.update_organization_location.side_effect = PersistenceFailure("write failed")
        orgs = [denton_org]

        report = coordinator.reconcile(orgs)

        assert report.outcomes[0].status == OutcomeStatus.PERSISTENCE_FAILURE
        assert report.outcomes[0].error == "write failed"
        assert orgs[0].coordinate is None

    def test_dry_run(self, store, geocoder, logger, denton_org):
        coordinator = ReconciliationCoordinator(
            store=store, geocoder=geocoder, dry_run=True, logger=logger
        )
        geocoder.geocode.return_value = result_for(DENTON_ADDRESS, DENTON)
        orgs = [denton_org]

        report = coordinator.reconcile(orgs)

        store.update_organization_location.assert_not_called()
        assert report.dry_run
        assert report.outcomes[0].status == OutcomeStatus.UPDATED
        assert orgs[0].coordinate is None

    def test_geocoder_fields_fall_back_to_organization(self, coordinator, geocoder, denton_org):
        geocoder.geocode.return_value = GeocodeResult(
            coordinate=DENTON, query=DENTON_ADDRESS, city=None, state="TX", postal_code=None
        )

        location = coordinator.build_location(denton_org, geocoder.geocode.return_value)

        assert location.city == "Denton"
        assert location.zip_code == "76201"
        assert location.coordinate == DENTON

    def test_custom_threshold(self, store, geocoder, logger, make_organization):
        coordinator = ReconciliationCoordinator(
            store=store,
            geocoder=geocoder,
            drift_detector=DriftDetector(threshold_meters=100000),
            logger=logger
        )
        org = make_organization(coordinate=ALLEN, address="123 Main St")
        geocoder.geocode.return_value = result_for("123 Main St", DENTON)

        report = coordinator.reconcile([org], mode="all")

        assert report.outcomes[0].status == OutcomeStatus.UNCHANGED
        store.update_organization_location.assert_not_called()


class TestCancellation:

    def test_cancelled_before_start(self, coordinator, store, geocoder, denton_org):
        token = CancellationToken()
        token.cancel()

        report = coordinator.reconcile([denton_org], cancel_token=token)

        geocoder.geocode.assert_not_called()
        assert report.outcomes[0].status == OutcomeStatus.CANCELLED
        assert report.outcomes[0].status.retryable

    def test_cancelled_during_geocode_does_not_write(self, coordinator, store, geocoder, denton_org):
        token = CancellationToken()

        def geocode(address):
            token.cancel()
            return result_for(address, DENTON)

        geocoder.geocode.side_effect = geocode
        orgs = [denton_org]

        report = coordinator.reconcile(orgs, cancel_token=token)

        store.update_organization_location.assert_not_called()
        assert report.outcomes[0].status == OutcomeStatus.CANCELLED
        assert report.outcomes[0].geocoded == DENTON
        assert orgs[0].coordinate is None


    def test_interrupt_returns_partial_report(self, coordinator, store, geocoder, make_organization):
        orgs = [
            make_organization(org_id="a", name="Denton FD", address="123 Main St", city="Denton"),
            make_organization(org_id="b", name="Allen PD", city="Allen"),
            make_organization(org_id="c", name="Plano EMS", city="Plano"),
        ]
        token = CancellationToken()
        geocoder.geocode.side_effect = [result_for("123 Main St, Denton", DENTON), KeyboardInterrupt()]

        report = coordinator.reconcile(orgs, cancel_token=token)

        assert token.cancelled
        assert [o.status for o in report.outcomes] == [
            OutcomeStatus.UPDATED, OutcomeStatus.CANCELLED, OutcomeStatus.CANCELLED
        ]
        assert report.retryable
        assert geocoder.geocode.call_count == 2
        store.update_organization_location.assert_called_once()

    def test_interrupt_in_worker_pool(self, store, geocoder, logger, make_organization):
        orgs = [
            make_organization(org_id="a", name="Denton FD", city="Denton"),
            make_organization(org_id="b", name="Allen PD", city="Allen"),
        ]
        token = CancellationToken()
        geocoder.geocode.side_effect = KeyboardInterrupt()
        coordinator = ReconciliationCoordinator(
            store=store, geocoder=geocoder, max_workers=2, logger=logger
        )

        report = coordinator.reconcile(orgs, cancel_token=token)

        assert token.cancelled
        assert [o.status for o in report.outcomes] == [OutcomeStatus.CANCELLED] * 2
        store.update_organization_location.assert_not_called()

    def test_refused_geocoder_propagates(self, coordinator, store, geocoder, denton_org):
        geocoder.geocode.side_effect = GeocoderRejected("bad key")

        with pytest.raises(GeocoderRejected):
            coordinator.reconcile([denton_org])
        store.update_organization_location.assert_not_called()

class TestConcurrency:

    def test_worker_pool_preserves_order(self, store, geocoder, logger, make_organization):
        coordinator = ReconciliationCoordinator(
            store=store, geocoder=geocoder, max_workers=4, logger=logger
        )
        orgs = [
            make_organization(org_id=f"org-{i}", address=f"{i} Main St", city="Denton")
            for i in range(6)
        ]
        geocoder.geocode.side_effect = lambda address: result_for(
            address, Coordinate(33.0 + int(address.split()[0]) * 0.01, -97.0)
        )

        report = coordinator.reconcile(orgs)

        assert [o.organization_id for o in report.outcomes] == [f"org-{i}" for i in range(6)]
        assert all(o.status == OutcomeStatus.UPDATED for o in report.outcomes)
        assert store.update_organization_location.call_count == 6
        assert orgs[3].coordinate.latitude == pytest.approx(33.03)

    def test_concurrent_passes_write_once(self, coordinator, store, geocoder, denton_org):
        both_geocoded = threading.Barrier(2, timeout=5)

        def geocode(address):
            both_geocoded.wait()
            return result_for(address, DENTON)

        geocoder.geocode.side_effect = geocode
        orgs = [denton_org]
        reports = []

        threads = [
            threading.Thread(target=lambda: reports.append(coordinator.reconcile(orgs, mode="all")))
            for _ in range(2)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert store.update_organization_location.call_count == 1
        statuses = sorted(r.outcomes[0].status.value for r in reports)
        assert statuses == ["unchanged", "updated"]

    def test_invalid_worker_count(self, store, geocoder):
        with pytest.raises(ValueError):
            ReconciliationCoordinator(store=store, geocoder=geocoder, max_workers=0)

"""
Tests for the application wiring.

The API client and geocoder classes are patched; the coordinator is real.
"""

import sys
from unittest.mock import patch

import pytest  # type: ignore

from src.chimeo_locations.main import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_UNRESOLVED,
    ReconcilerApp,
    main,
)
from src.chimeo_locations.models import (
    Coordinate,
    GeocodeResult,
    Organization,
    OrganizationOutcome,
    OutcomeStatus,
    ReconciliationReport,
)


@pytest.fixture
def config_path(base_config, write_config, tmp_path):
    base_config["logging"] = {"file": str(tmp_path / "logs" / "test.log")}
    return write_config(base_config)


@pytest.fixture
def patched(monkeypatch):
    for var in ("FIREBASE_PROJECT_ID", "GEOCODER_USER_AGENT", "LOG_FILE", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    with patch("src.chimeo_locations.main.ChimeoAPI") as api_cls, \
            patch("src.chimeo_locations.main.GeocodingClient") as geocoder_cls:
        yield api_cls.return_value, geocoder_cls.return_value


def test_run_reconciles_missing_organizations(config_path, patched):
    api, geocoder = patched
    api.list_organizations.return_value = [
        Organization.from_document("a", {
            "name": "Denton FD",
            "location": {"latitude": 0.0, "longitude": 0.0,
                         "address": "123 Main St", "city": "Denton", "state": "TX"},
        }),
        Organization.from_document("b", {
            "name": "Allen PD",
            "location": {"latitude": 33.1032, "longitude": -96.6705, "city": "Allen"},
        }),
    ]
    geocoder.geocode.return_value = GeocodeResult(
        coordinate=Coordinate(33.2148, -97.1331), query="123 Main St, Denton, TX"
    )

    app = ReconcilerApp(config_file=config_path)
    report = app.run()

    api.login.assert_called_once()
    api.close.assert_called_once()
    assert [o.organization_id for o in report.outcomes] == ["a"]
    assert report.outcomes[0].status == OutcomeStatus.UPDATED
    api.update_organization_location.assert_called_once()


def test_run_with_explicit_ids_and_dry_run(config_path, patched):
    api, geocoder = patched
    api.get_organization.return_value = Organization.from_document("a", {
        "name": "Denton FD",
        "location": {"latitude": 33.1032, "longitude": -96.6705, "address": "123 Main St"},
    })
    geocoder.geocode.return_value = GeocodeResult(
        coordinate=Coordinate(33.2148, -97.1331), query="123 Main St"
    )

    app = ReconcilerApp(config_file=config_path)
    report = app.run(mode="all", organization_ids=["a"], dry_run=True)

    api.get_organization.assert_called_once_with("a", treat_zero_as_missing=True)
    api.list_organizations.assert_not_called()
    api.update_organization_location.assert_not_called()
    assert report.dry_run
    assert report.outcomes[0].status == OutcomeStatus.UPDATED


def test_run_without_organizations(config_path, patched):
    api, _ = patched
    api.list_organizations.return_value = []

    report = ReconcilerApp(config_file=config_path).run()

    assert len(report) == 0


def test_run_propagates_sign_in_failure(config_path, patched):
    api, _ = patched
    api.login.side_effect = ValueError("No ID token received in sign-in response")

    with pytest.raises(ValueError):
        ReconcilerApp(config_file=config_path).run()
    api.close.assert_called_once()


class TestMain:
    """Test command line wiring and exit codes."""

    @pytest.fixture
    def app_cls(self):
        with patch("src.chimeo_locations.main.ReconcilerApp") as app_cls:
            yield app_cls

    def run_main(self, monkeypatch, *argv):
        monkeypatch.setattr(sys, "argv", ["chimeo-reconcile", *argv])
        with pytest.raises(SystemExit) as exc_info:
            main()
        return exc_info.value.code

    def report_with(self, *statuses):
        return ReconciliationReport(outcomes=[
            OrganizationOutcome(organization_id=str(i), name=f"Org {i}", status=status)
            for i, status in enumerate(statuses)
        ])

    def test_arguments_passed_to_run(self, monkeypatch, app_cls):
        app_cls.return_value.run.return_value = self.report_with(OutcomeStatus.UPDATED)

        code = self.run_main(
            monkeypatch,
            "--config", "custom.json", "--mode", "all", "--workers", "4",
            "--threshold", "150", "--dry-run",
            "--organization", "abc", "--organization", "def",
        )

        assert code == EXIT_OK
        app_cls.assert_called_once_with(config_file="custom.json")
        app_cls.return_value.run.assert_called_once_with(
            mode="all",
            organization_ids=["abc", "def"],
            max_workers=4,
            dry_run=True,
            threshold_meters=150.0
        )

    def test_defaults_left_to_configuration(self, monkeypatch, app_cls):
        app_cls.return_value.run.return_value = self.report_with(
            OutcomeStatus.UNCHANGED, OutcomeStatus.NOT_FOUND
        )

        code = self.run_main(monkeypatch)

        assert code == EXIT_OK
        app_cls.return_value.run.assert_called_once_with(
            mode=None, organization_ids=None, max_workers=None, dry_run=None, threshold_meters=None
        )

    def test_retryable_outcomes_exit_unresolved(self, monkeypatch, app_cls):
        app_cls.return_value.run.return_value = self.report_with(
            OutcomeStatus.UPDATED, OutcomeStatus.TRANSIENT_FAILURE
        )

        assert self.run_main(monkeypatch) == EXIT_UNRESOLVED

    def test_application_failure(self, monkeypatch, app_cls):
        app_cls.side_effect = FileNotFoundError("config.json")

        assert self.run_main(monkeypatch) == EXIT_FAILURE

    def test_invalid_worker_count(self, monkeypatch, app_cls):
        assert self.run_main(monkeypatch, "--workers", "0") == EXIT_FAILURE
        app_cls.assert_not_called()

    def test_invalid_mode_rejected_by_parser(self, monkeypatch, app_cls):
        assert self.run_main(monkeypatch, "--mode", "sometimes") == 2
        app_cls.assert_not_called()

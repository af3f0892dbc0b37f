"""
Main entry point for the organization location reconciler.

Orchestrates sign-in, organization loading and one reconciliation run.
"""

import sys
from typing import List, Optional

from .core import Config, setup_logger, LoggerContext, constants
from .api import ChimeoAPI
from .algorithms import AddressNormalizer, DriftDetector
from .models import Organization, ReconciliationReport
from .services import CancellationToken, GeocodingClient, ReconciliationCoordinator

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNRESOLVED = 2


class ReconcilerApp:
    """Main application for organization location reconciliation."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize application.

        Args:
            config_file: Path to configuration file
        """
        self.config = Config(config_file)

        self.logger = setup_logger(
            log_file=self.config.log_file,
            log_level=self.config.log_level
        )
        self.logger.info("=" * 60)
        self.logger.info("Chimeo Organization Location Reconciler")
        self.logger.info("=" * 60)
        self.logger.info(f"Configuration: {self.config}")

        self.api_client: Optional[ChimeoAPI] = None
        self.geocoder: Optional[GeocodingClient] = None
        self.coordinator: Optional[ReconciliationCoordinator] = None
        self.cancel_token = CancellationToken()

    def initialize_components(
        self,
        max_workers: Optional[int] = None,
        dry_run: Optional[bool] = None,
        threshold_meters: Optional[float] = None
    ) -> None:
        """
        Initialize all application components.

        Arguments override the matching configuration values when given.
        """
        self.logger.info("Initializing components...")

        self.api_client = ChimeoAPI(
            project_id=self.config.firebase_project_id,
            api_key=self.config.firebase_api_key,
            email=self.config.auth_email,
            password=self.config.auth_password,
            id_token=self.config.auth_id_token,
            database=self.config.firestore_database,
            base_url=self.config.firestore_base_url,
            timeout=self.config.api_timeout,
            max_retries=self.config.api_max_retries,
            verify_ssl=self.config.api_verify_ssl,
            logger=self.logger
        )
        self.api_client.login()

        self.geocoder = GeocodingClient(
            provider=self.config.geocoder_provider,
            user_agent=self.config.geocoder_user_agent,
            timeout=self.config.geocoder_timeout,
            min_delay_seconds=self.config.geocoder_min_delay_seconds,
            max_retries=self.config.geocoder_max_retries,
            error_wait_seconds=self.config.geocoder_error_wait_seconds,
            options=self.config.geocoder_options,
            logger=self.logger
        )

        drift_detector = DriftDetector(
            threshold_meters=(
                threshold_meters if threshold_meters is not None
                else self.config.drift_threshold_meters
            ),
            treat_sentinel_as_missing=self.config.treat_zero_as_missing,
            logger=self.logger
        )

        self.coordinator = ReconciliationCoordinator(
            store=self.api_client,
            geocoder=self.geocoder,
            normalizer=AddressNormalizer(logger=self.logger),
            drift_detector=drift_detector,
            max_workers=max_workers or self.config.max_workers,
            dry_run=self.config.dry_run if dry_run is None else dry_run,
            logger=self.logger
        )

        self.logger.info("All components initialized successfully")

    def load_organizations(self, organization_ids: Optional[List[str]] = None) -> List[Organization]:
        """
        Load organizations from Firestore.

        Args:
            organization_ids: Only load these organizations. If None, loads all.
        """
        if self.api_client is None:
            raise RuntimeError("Components not properly initialized")

        treat_zero = self.config.treat_zero_as_missing
        if organization_ids:
            return [
                self.api_client.get_organization(org_id, treat_zero_as_missing=treat_zero)
                for org_id in organization_ids
            ]
        return self.api_client.list_organizations(
            page_size=self.config.page_size,
            treat_zero_as_missing=treat_zero
        )

    def run(
        self,
        mode: Optional[str] = None,
        organization_ids: Optional[List[str]] = None,
        max_workers: Optional[int] = None,
        dry_run: Optional[bool] = None,
        threshold_meters: Optional[float] = None
    ) -> ReconciliationReport:
        """
        Run one reconciliation pass.

        Args:
            mode: 'missing' or 'all'. Default from configuration.
            organization_ids: Restrict the run to these organizations
            max_workers: Concurrent organizations
            dry_run: Report without writing
            threshold_meters: Drift threshold override

        Returns:
            Reconciliation report
        """
        try:
            self.initialize_components(
                max_workers=max_workers,
                dry_run=dry_run,
                threshold_meters=threshold_meters
            )

            with LoggerContext(self.logger, "organization loading"):
                organizations = self.load_organizations(organization_ids)

            if not organizations:
                self.logger.warning("No organizations found")
                return ReconciliationReport(dry_run=self.coordinator.dry_run)

            with LoggerContext(self.logger, "location reconciliation"):
                return self.coordinator.reconcile(
                    organizations,
                    mode=mode or self.config.reconciliation_mode,
                    cancel_token=self.cancel_token
                )

        except Exception as e:
            self.logger.error(f"Application error: {e}", exc_info=True)
            raise

        finally:
            if self.api_client:
                self.api_client.close()


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Reconcile Chimeo organization coordinates with their addresses"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--mode",
        choices=constants.RECONCILIATION_MODES,
        default=None,
        help="'missing' processes organizations without coordinates, 'all' re-checks every one"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Organizations processed concurrently"
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Drift threshold in meters"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Report what would change without writing"
    )
    parser.add_argument(
        "--organization",
        action="append",
        dest="organization_ids",
        default=None,
        help="Only reconcile this organization ID (repeatable)"
    )

    args = parser.parse_args()

    if args.workers is not None and args.workers < 1:
        print(f"Invalid worker count: {args.workers}")
        sys.exit(EXIT_FAILURE)

    try:
        app = ReconcilerApp(config_file=args.config)
        report = app.run(
            mode=args.mode,
            organization_ids=args.organization_ids,
            max_workers=args.workers,
            dry_run=args.dry_run,
            threshold_meters=args.threshold
        )
    except KeyboardInterrupt:
        print("Interrupted")
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        print(f"Application failed: {e}")
        sys.exit(EXIT_FAILURE)

    sys.exit(EXIT_UNRESOLVED if report.retryable else EXIT_OK)


if __name__ == "__main__":
    main()

"""
Configuration module for the organization location reconciler.

Loads configuration from JSON file and environment variables.
"""

import json
import os
from typing import Dict, Any, Optional
from pathlib import Path

from . import constants


class Config:
    """Configuration manager for the application."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration JSON file. If None, uses CONFIG_FILE env var
                        or defaults to 'config.json'
        """
        self.config_file = config_file or os.getenv("CONFIG_FILE", "config.json")
        self.config: Dict[str, Any] = {}
        self._load_config()
        self._override_from_env()
        self._validate_config()

    def _load_config(self) -> None:
        """Load configuration from JSON file."""
        config_path = Path(self.config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        with open(config_path, "r", encoding="utf-8") as f:
            self.config = json.load(f)

    def _set(self, section: str, key: str, value: Any) -> None:
        self.config.setdefault(section, {})[key] = value

    def _override_from_env(self) -> None:
        """Override configuration with environment variables."""
        env_overrides = [
            ("FIREBASE_PROJECT_ID", "firebase", "project_id"),
            ("FIREBASE_API_KEY", "firebase", "api_key"),
            ("CHIMEO_EMAIL", "authentication", "email"),
            ("CHIMEO_PASSWORD", "authentication", "password"),
            ("CHIMEO_ID_TOKEN", "authentication", "id_token"),
            ("GEOCODER_USER_AGENT", "geocoding", "user_agent"),
            ("LOG_LEVEL", "logging", "level"),
            ("LOG_FILE", "logging", "file"),
        ]
        for env_var, section, key in env_overrides:
            if os.getenv(env_var):
                self._set(section, key, os.getenv(env_var))

        if os.getenv("ENVIRONMENT"):
            self.config["environment"] = os.getenv("ENVIRONMENT")

    def _validate_config(self) -> None:
        """Validate that required configuration keys are present."""
        required_config = {
            "firebase": ["project_id"],
            "authentication": [],  # email+password or id_token, validated below
            "geocoding": ["user_agent"],
        }

        missing_sections = [s for s in required_config if s not in self.config]
        if missing_sections:
            raise ValueError(
                f"Missing required configuration sections: {', '.join(missing_sections)}"
            )

        missing_keys = []
        for section, keys in required_config.items():
            for key in keys:
                if not self.config[section].get(key):
                    missing_keys.append(f"{section}.{key}")

        if missing_keys:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing_keys)}"
            )

        auth = self.config.get("authentication", {})
        if not auth.get("id_token"):
            if not auth.get("email") or not auth.get("password"):
                raise ValueError(
                    "Authentication configuration must include either 'id_token' "
                    "or both 'email' and 'password'"
                )
            if not self.firebase_api_key:
                raise ValueError(
                    "Password sign-in requires 'firebase.api_key'"
                )

        if self.reconciliation_mode not in constants.RECONCILIATION_MODES:
            raise ValueError(
                f"Invalid reconciliation.mode '{self.reconciliation_mode}'. "
                f"Expected one of: {', '.join(constants.RECONCILIATION_MODES)}"
            )

        if self.drift_threshold_meters < 0:
            raise ValueError("reconciliation.drift_threshold_meters must not be negative")

        if self.max_workers < 1:
            raise ValueError("reconciliation.max_workers must be at least 1")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key (supports dot notation).

        Args:
            key: Configuration key (e.g., 'firebase.project_id')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    @property
    def firebase_project_id(self) -> str:
        """Get Firebase project ID."""
        return self.get("firebase.project_id", "")

    @property
    def firebase_api_key(self) -> Optional[str]:
        """Get Firebase web API key."""
        return self.get("firebase.api_key")

    @property
    def firestore_database(self) -> str:
        """Get Firestore database ID."""
        return self.get("firebase.database", constants.DEFAULT_DATABASE)

    @property
    def firestore_base_url(self) -> str:
        """Get Firestore REST base URL."""
        return self.get("firebase.base_url", constants.FIRESTORE_BASE_URL)

    @property
    def api_timeout(self) -> int:
        """Get API timeout in seconds."""
        return self.get("firebase.timeout", 30)

    @property
    def api_max_retries(self) -> int:
        """Get maximum API retry attempts."""
        return self.get("firebase.max_retries", 3)

    @property
    def api_verify_ssl(self) -> bool:
        """Get API SSL verification setting."""
        return self.get("firebase.verify_ssl", True)

    @property
    def auth_email(self) -> Optional[str]:
        return self.get("authentication.email")

    @property
    def auth_password(self) -> Optional[str]:
        return self.get("authentication.password")

    @property
    def auth_id_token(self) -> Optional[str]:
        return self.get("authentication.id_token")

    @property
    def geocoder_provider(self) -> str:
        """Get geopy provider name."""
        return self.get("geocoding.provider", constants.DEFAULT_GEOCODER_PROVIDER)

    @property
    def geocoder_user_agent(self) -> str:
        return self.get("geocoding.user_agent", "")

    @property
    def geocoder_timeout(self) -> int:
        return self.get("geocoding.timeout", constants.DEFAULT_GEOCODER_TIMEOUT)

    @property
    def geocoder_min_delay_seconds(self) -> float:
        return float(self.get("geocoding.min_delay_seconds", constants.DEFAULT_MIN_DELAY_SECONDS))

    @property
    def geocoder_max_retries(self) -> int:
        return int(self.get("geocoding.max_retries", constants.DEFAULT_GEOCODER_MAX_RETRIES))

    @property
    def geocoder_error_wait_seconds(self) -> float:
        return float(self.get("geocoding.error_wait_seconds", constants.DEFAULT_ERROR_WAIT_SECONDS))

    @property
    def geocoder_options(self) -> Dict[str, Any]:
        """Extra keyword arguments for the geopy provider (e.g., api_key, domain)."""
        return self.get("geocoding.options", {})

    @property
    def reconciliation_mode(self) -> str:
        return self.get("reconciliation.mode", constants.MODE_MISSING)

    @property
    def drift_threshold_meters(self) -> float:
        """Get drift threshold in meters."""
        return float(self.get(
            "reconciliation.drift_threshold_meters",
            constants.DEFAULT_DRIFT_THRESHOLD_METERS
        ))

    @property
    def max_workers(self) -> int:
        return int(self.get("reconciliation.max_workers", 1))

    @property
    def dry_run(self) -> bool:
        return bool(self.get("reconciliation.dry_run", False))

    @property
    def treat_zero_as_missing(self) -> bool:
        """Whether a stored (0, 0) coordinate means 'no coordinate'."""
        return bool(self.get("reconciliation.treat_zero_as_missing", True))

    @property
    def page_size(self) -> int:
        return int(self.get("reconciliation.page_size", constants.DEFAULT_PAGE_SIZE))

    @property
    def log_level(self) -> str:
        return self.get("logging.level", "INFO")

    @property
    def log_file(self) -> Optional[str]:
        return self.get("logging.file")

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(file={self.config_file}, project={self.firebase_project_id}, "
            f"env={self.get('environment')})"
        )

"""
Authentication operations for Firebase Auth REST API.

Handles sign-in, token refresh, and local session teardown.
"""

import logging
from typing import Dict, Any, Optional

import requests  # type: ignore

from .client import APIClient
from ..core import constants


class AuthAPI(APIClient):
    """API client with Firebase authentication capabilities."""

    logger: logging.Logger

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        id_token: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        verify_ssl: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize API client with authentication.

        Args:
            base_url: Base URL for the data API
            api_key: Firebase web API key (required for password sign-in)
            email: Account email
            password: Account password
            id_token: Pre-issued ID token used instead of password sign-in
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            verify_ssl: Whether to verify SSL certificates
            logger: Logger instance
        """
        super().__init__(base_url, timeout, max_retries, verify_ssl, logger)

        self.api_key = api_key
        self.email = email
        self.password = password
        self._static_token = id_token

        self.user_id: Optional[str] = None
        self.refresh_token: Optional[str] = None

    def _set_session(self, id_token: str, user_id: Optional[str], refresh_token: Optional[str]) -> None:
        self.id_token = id_token
        self.user_id = user_id
        self.refresh_token = refresh_token
        self.is_authenticated = True
        self._update_headers()

    def _reauthenticate(self) -> bool:
        if not self.refresh_token:
            return False

        self.logger.info("ID token rejected, refreshing session")
        self.refresh()
        return True

    def login(self) -> Dict[str, Any]:
        """
        Sign in with email and password, or adopt the pre-issued token.

        Returns:
            Sign-in response data

        Raises:
            ValueError: If credentials are incomplete
            requests.exceptions.RequestException: On sign-in failure
        """
        if self._static_token:
            self.logger.info("Using pre-issued ID token")
            self._set_session(self._static_token, None, None)
            return {"idToken": self._static_token}

        if not self.email or not self.password:
            raise ValueError("Email and password are required for authentication")
        if not self.api_key:
            raise ValueError("API key is required for password sign-in")

        self.logger.info(f"Signing in as {self.email}")

        try:
            response = self._make_request(
                "POST",
                f"{constants.IDENTITY_TOOLKIT_URL}/accounts:signInWithPassword",
                skip_auth_check=True,
                params={"key": self.api_key},
                json={
                    "email": self.email,
                    "password": self.password,
                    "returnSecureToken": True,
                }
            )
            data = response.json()
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Sign-in failed: {e}")
            self.is_authenticated = False
            raise

        if not data.get("idToken"):
            self.logger.error("No ID token received in sign-in response")
            raise ValueError("No ID token received in sign-in response")

        self._set_session(data["idToken"], data.get("localId"), data.get("refreshToken"))
        self.logger.info(f"Successfully signed in as user {self.user_id}")
        return data

    def refresh(self) -> Dict[str, Any]:
        """
        Exchange the refresh token for a new ID token.

        Returns:
            Token response data

        Raises:
            RuntimeError: If there is no refresh token
            requests.exceptions.RequestException: On refresh failure
        """
        if not self.refresh_token:
            raise RuntimeError("No refresh token available, cannot refresh session")

        self.logger.info("Refreshing ID token")

        try:
            response = self._make_request(
                "POST",
                constants.SECURE_TOKEN_URL,
                skip_auth_check=True,
                params={"key": self.api_key},
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self.refresh_token,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"}
            )
            data = response.json()
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Token refresh failed: {e}")
            raise

        self._set_session(
            data["id_token"],
            data.get("user_id", self.user_id),
            data.get("refresh_token", self.refresh_token)
        )
        self.logger.info("ID token refreshed")
        return data

    def logout(self) -> None:
        """Forget the current session tokens."""
        if not self.is_authenticated:
            self.logger.warning("Not authenticated, skipping logout")
            return

        self.id_token = None
        self.user_id = None
        self.refresh_token = None
        self.is_authenticated = False
        self._update_headers()
        self.logger.info("Session cleared")

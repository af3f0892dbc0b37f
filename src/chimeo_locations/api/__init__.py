"""
API layer for the Chimeo Firestore backend.

Provides low-level clients for Firebase authentication and organization documents.
"""

import logging
from typing import Optional

from .client import APIClient
from .auth import AuthAPI
from .organizations import OrganizationsAPI
from . import helpers
from ..core import constants


class ChimeoAPI(AuthAPI, OrganizationsAPI):
    """
    Unified API client for the Chimeo backend.

    Combines authentication and organization document operations.
    """

    def __init__(
        self,
        project_id: str,
        api_key: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        id_token: Optional[str] = None,
        database: str = constants.DEFAULT_DATABASE,
        base_url: str = constants.FIRESTORE_BASE_URL,
        timeout: int = 30,
        max_retries: int = 3,
        verify_ssl: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize unified API client.

        Args:
            project_id: Firebase project ID
            api_key: Firebase web API key
            email: Account email
            password: Account password
            id_token: Pre-issued ID token (skips password sign-in)
            database: Firestore database ID
            base_url: Firestore REST base URL
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            verify_ssl: Whether to verify SSL certificates
            logger: Logger instance
        """
        super().__init__(
            base_url=base_url,
            api_key=api_key,
            email=email,
            password=password,
            id_token=id_token,
            timeout=timeout,
            max_retries=max_retries,
            verify_ssl=verify_ssl,
            logger=logger
        )
        self.project_id = project_id
        self.database = database


__all__ = [
    "APIClient",
    "AuthAPI",
    "OrganizationsAPI",
    "ChimeoAPI",
    "helpers",
]

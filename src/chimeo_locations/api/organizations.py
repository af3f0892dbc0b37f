"""
Organization operations for the Firestore REST API.

Handles retrieval of organization documents and location updates.
"""

import logging
from typing import List, Dict, Any, Optional

import requests  # type: ignore

from . import helpers
from ..core import constants
from ..core.errors import PersistenceFailure
from ..models import Location, Organization


class OrganizationsAPI:
    """Mixin for organization-related Firestore operations."""

    # Attributes provided by the combined client
    logger: logging.Logger
    project_id: str
    database: str

    def get(self, endpoint: str, params: Any = None) -> Any:
        """Method provided by APIClient base class."""
        ...

    def post(self, endpoint: str, data: Dict[str, Any], skip_auth_check: bool = False) -> Any:
        """Method provided by APIClient base class."""
        ...

    @property
    def database_path(self) -> str:
        return f"projects/{self.project_id}/databases/{self.database}"

    @property
    def documents_path(self) -> str:
        return f"{self.database_path}/documents"

    def organization_document_name(self, organization_id: str) -> str:
        return f"{self.documents_path}/{constants.ORGANIZATIONS_COLLECTION}/{organization_id}"

    def list_organization_documents(self, page_size: int = constants.DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
        """
        Get all raw organization documents, following pagination.

        Args:
            page_size: Documents per page

        Returns:
            List of Firestore document objects
        """
        self.logger.info("Fetching organizations")
        endpoint = f"{self.documents_path}/{constants.ORGANIZATIONS_COLLECTION}"

        documents: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"pageSize": page_size}
            if page_token:
                params["pageToken"] = page_token

            result = self.get(endpoint, params=params)
            documents.extend(result.get("documents", []))

            page_token = result.get("nextPageToken")
            if not page_token:
                break

        self.logger.info(f"Found {len(documents)} organization documents")
        return documents

    def parse_organization(
        self,
        document: Dict[str, Any],
        treat_zero_as_missing: bool = True
    ) -> Organization:
        """Convert a raw Firestore document to an Organization."""
        fields = helpers.decode_fields(document.get("fields", {}))
        return Organization.from_document(
            helpers.document_id(document["name"]),
            fields,
            treat_zero_as_missing=treat_zero_as_missing
        )

    def list_organizations(
        self,
        page_size: int = constants.DEFAULT_PAGE_SIZE,
        treat_zero_as_missing: bool = True
    ) -> List[Organization]:
        """
        Get all organizations.

        Documents that cannot be decoded are logged and skipped.

        Args:
            page_size: Documents per page
            treat_zero_as_missing: Load a stored (0, 0) as 'no coordinate'

        Returns:
            List of organizations
        """
        organizations = []
        for document in self.list_organization_documents(page_size=page_size):
            try:
                organizations.append(
                    self.parse_organization(document, treat_zero_as_missing=treat_zero_as_missing)
                )
            except (KeyError, ValueError, TypeError) as e:
                self.logger.warning(
                    f"Failed to decode organization {document.get('name', '<unnamed>')}: {e}"
                )
        return organizations

    def get_organization(
        self,
        organization_id: str,
        treat_zero_as_missing: bool = True
    ) -> Organization:
        """
        Get a single organization by ID.

        Raises:
            requests.exceptions.RequestException: On request failure (404 if missing)
        """
        self.logger.info(f"Fetching organization {organization_id}")
        document = self.get(self.organization_document_name(organization_id))
        return self.parse_organization(document, treat_zero_as_missing=treat_zero_as_missing)

    def update_organization_location(self, organization_id: str, location: Location) -> Dict[str, Any]:
        """
        Replace the organization's location map and set updatedAt to server time.

        Args:
            organization_id: Organization document ID
            location: New location

        Returns:
            Commit response

        Raises:
            PersistenceFailure: If the write fails
        """
        body = helpers.build_location_update(
            self.organization_document_name(organization_id),
            location.to_document_fields()
        )

        try:
            result = self.post(f"{self.database_path}/documents:commit", data=body)
        except requests.exceptions.RequestException as e:
            raise PersistenceFailure(
                f"Failed to save location for organization {organization_id}: {e}"
            ) from e

        self.logger.info(f"Saved location for organization {organization_id}")
        return result

    def is_user_admin(self, organization_id: str, user_id: Optional[str]) -> bool:
        """
        Check whether a user is listed as an admin of the organization.

        Returns False when the organization cannot be read.
        """
        if not user_id:
            return False

        try:
            organization = self.get_organization(organization_id)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Failed to check admin status for {organization_id}: {e}")
            return False

        return organization.is_admin(user_id)

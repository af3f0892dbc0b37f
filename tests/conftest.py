"""
Pytest configuration and shared fixtures for all tests.
"""

import sys
import json
from pathlib import Path

import pytest

# Add the project root to sys.path so we can import from src
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def make_organization():
    """Factory for organizations with sensible defaults."""
    from src.chimeo_locations.models import Location, Organization

    def _make(
        org_id="org-1",
        name="Denton Fire Department",
        coordinate=None,
        address=None,
        city=None,
        state=None,
        zip_code=None,
        flat=None,
        admin_ids=None,
    ):
        flat = flat or {}
        return Organization(
            id=org_id,
            name=name,
            type="fire",
            location=Location(
                coordinate=coordinate,
                address=address,
                city=city,
                state=state,
                zip_code=zip_code,
            ),
            admin_ids=admin_ids or {},
            address=flat.get("address"),
            city=flat.get("city"),
            state=flat.get("state"),
            zip_code=flat.get("zip_code"),
        )

    return _make


@pytest.fixture
def base_config():
    """Minimal valid configuration dictionary."""
    return {
        "firebase": {"project_id": "chimeo-test", "api_key": "test-key"},
        "authentication": {"email": "admin@example.com", "password": "secret"},
        "geocoding": {"user_agent": "chimeo-tests"},
    }


@pytest.fixture
def write_config(tmp_path):
    """Write a configuration dictionary to a temporary JSON file."""

    def _write(data):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    return _write


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring API access"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test (no external dependencies)"
    )

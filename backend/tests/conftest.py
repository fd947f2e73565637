"""
Pytest configuration and fixtures for ControlPulse backend tests.
"""
import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="module")
def client():
    """Provide FastAPI test client"""
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client

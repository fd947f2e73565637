"""
Unit test fixtures and helpers.

Provides lightweight fixtures for unit testing that do NOT require
running services: risk snapshot series and a small control dependency graph.
"""

from typing import Any, Dict, List

import pytest

from app.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; reset around each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def rising_snapshots() -> List[Dict[str, Any]]:
    """Daily snapshots rising by $10/day from $1000."""
    return [
        {"timestamp": "2024-03-01T00:00:00Z", "riskExposure": 1000},
        {"timestamp": "2024-03-02T00:00:00Z", "riskExposure": 1010},
        {"timestamp": "2024-03-03T00:00:00Z", "riskExposure": 1020},
        {"timestamp": "2024-03-04T00:00:00Z", "riskExposure": 1030},
    ]


@pytest.fixture
def spike_snapshots() -> List[Dict[str, Any]]:
    """Daily snapshots 100 -> 150 -> 100."""
    return [
        {"timestamp": "2024-01-01T00:00:00Z", "riskExposure": 100},
        {"timestamp": "2024-01-02T00:00:00Z", "riskExposure": 150},
        {"timestamp": "2024-01-03T00:00:00Z", "riskExposure": 100},
    ]


@pytest.fixture
def chain_graph() -> Dict[str, List[Dict[str, Any]]]:
    """
    Three-control chain IAM-01 -> LOG-01 -> MON-01.

    Expected cascade risks: 0.2, 0.19, 0.19 at depths 0, 1, 2.
    """
    return {
        "nodes": [
            {"id": "IAM-01", "name": "Identity Management", "failureProbability": 0.2, "category": "access"},
            {"id": "LOG-01", "name": "Audit Logging", "failureProbability": 0.1, "category": "logging"},
            {"id": "MON-01", "name": "Security Monitoring", "failureProbability": 0.0, "category": "monitoring"},
        ],
        "edges": [
            {"parentId": "IAM-01", "childId": "LOG-01", "strength": 0.5, "type": "functional"},
            {"parentId": "LOG-01", "childId": "MON-01", "strength": 1.0, "type": "data"},
        ],
    }

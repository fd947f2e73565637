"""
Integration tests for the analytics API.

Tests:
- Health check and version endpoints
- Entropy, momentum, Bayesian and cascade endpoints return camelCase payloads
- Invalid bodies are rejected with 422
"""

import pytest

SNAPSHOTS = [
    {"timestamp": "2024-03-01T00:00:00Z", "riskExposure": 1000},
    {"timestamp": "2024-03-02T00:00:00Z", "riskExposure": 1010},
    {"timestamp": "2024-03-03T00:00:00Z", "riskExposure": 1020},
    {"timestamp": "2024-03-04T00:00:00Z", "riskExposure": 1030},
]

GRAPH = {
    "nodes": [
        {"id": "IAM-01", "name": "Identity Management", "failureProbability": 0.2},
        {"id": "LOG-01", "name": "Audit Logging", "failureProbability": 0.1},
        {"id": "MON-01", "name": "Security Monitoring", "failureProbability": 0.0},
    ],
    "edges": [
        {"parentId": "IAM-01", "childId": "LOG-01", "strength": 0.5},
        {"parentId": "LOG-01", "childId": "MON-01", "strength": 1.0, "type": "data"},
    ],
}


@pytest.mark.integration
class TestHealthAndVersion:
    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_version(self, client):
        resp = client.get("/api/analytics/version")

        assert resp.status_code == 200
        assert resp.json()["engines"] == "entropy,momentum,bayesian,dependency"


@pytest.mark.integration
class TestEntropyEndpoints:
    def test_compliance_entropy(self, client):
        resp = client.post(
            "/api/analytics/entropy",
            json={"controlStates": ["pass", "pass", "fail", "fail"]},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["cei"] == pytest.approx(0.5)
        assert data["zone"] == "transitional"
        assert data["zoneLabel"] == "Transitional"
        assert data["dominantState"] == "pass"
        assert set(data["stateDistribution"]) == {"pass", "fail", "warning", "not_tested"}

    def test_empty_entropy(self, client):
        resp = client.post("/api/analytics/entropy", json={})

        assert resp.status_code == 200
        assert resp.json()["zoneLabel"] == "No Data"

    def test_unknown_state_rejected(self, client):
        resp = client.post("/api/analytics/entropy", json={"controlStates": ["pass", "broken"]})
        assert resp.status_code == 422

    def test_entropy_velocity(self, client):
        resp = client.post(
            "/api/analytics/entropy/velocity",
            json={
                "history": [
                    {"timestamp": "2024-01-01T00:00:00Z", "cei": 0.6},
                    {"timestamp": "2024-01-02T00:00:00Z", "cei": 0.4},
                ]
            },
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["currentCEI"] == 0.4
        assert data["previousCEI"] == 0.6
        assert data["trend"] == "stabilizing"

    def test_entropy_velocity_rejects_zero_window(self, client):
        resp = client.post("/api/analytics/entropy/velocity", json={"history": [], "windowSize": 0})
        assert resp.status_code == 422

    def test_conditional_entropy(self, client):
        resp = client.post(
            "/api/analytics/entropy/conditional",
            json={"controlStates": ["pass", "fail", "pass"], "groupLabels": ["SOC2", "SOC2"]},
        )

        assert resp.status_code == 200
        groups = resp.json()["groups"]
        assert groups["SOC2"]["cei"] == pytest.approx(0.5)
        assert groups["unknown"]["dominantState"] == "pass"


@pytest.mark.integration
class TestRiskEndpoints:
    def test_risk_derivatives(self, client):
        resp = client.post("/api/analytics/risk/derivatives", json={"snapshots": list(reversed(SNAPSHOTS))})

        assert resp.status_code == 200
        points = resp.json()
        assert [p["riskExposure"] for p in points] == [1000, 1010, 1020, 1030]
        assert points[-1]["velocity"] == pytest.approx(10.0)

    def test_risk_momentum(self, client):
        resp = client.post("/api/analytics/risk/momentum", json={"snapshots": SNAPSHOTS})

        assert resp.status_code == 200
        data = resp.json()
        assert data["momentum"]["trend"] == "worsening"
        assert data["momentum"]["trendLabel"] == "Worsening"
        assert data["momentum"]["projectedRisk30Days"] == pytest.approx(1330.0)
        assert data["formattedVelocity"] == "+$10/day"
        assert data["formattedMomentumScore"] == "+26"
        assert data["formattedProjection90Days"] == "$2K"

    def test_empty_momentum(self, client):
        resp = client.post("/api/analytics/risk/momentum", json={"snapshots": []})

        assert resp.status_code == 200
        assert resp.json()["momentum"]["trendLabel"] == "No Data"
        assert resp.json()["formattedMomentumScore"] == "0"

    @pytest.mark.parametrize(
        "snapshot",
        [
            {"timestamp": "not-a-date", "riskExposure": 10},
            {"timestamp": "2024-01-01T00:00:00Z", "riskExposure": "10"},
        ],
    )
    def test_malformed_snapshot_rejected(self, client, snapshot):
        resp = client.post("/api/analytics/risk/momentum", json={"snapshots": [snapshot]})
        assert resp.status_code == 422

    def test_overflowing_velocity_rejected(self, client):
        resp = client.post(
            "/api/analytics/risk/momentum",
            json={
                "snapshots": [
                    {"timestamp": "2024-01-01T00:00:00Z", "riskExposure": 0},
                    {"timestamp": "2024-01-01T01:00:00Z", "riskExposure": 1.7e308},
                ]
            },
        )

        assert resp.status_code == 422
        assert "overflows" in resp.json()["detail"]

    def test_timestamps_echoed_as_sent(self, client):
        snapshots = [
            {"timestamp": "2024-01-01", "riskExposure": 100},
            {"timestamp": "2024-01-02T00:00:00+00:00", "riskExposure": 150},
        ]

        derivatives = client.post("/api/analytics/risk/derivatives", json={"snapshots": snapshots})
        momentum = client.post("/api/analytics/risk/momentum", json={"snapshots": snapshots})

        assert derivatives.status_code == 200
        assert [p["timestamp"] for p in derivatives.json()] == ["2024-01-01", "2024-01-02T00:00:00+00:00"]
        assert momentum.json()["momentum"]["velocityHistory"][0]["timestamp"] == "2024-01-01"


@pytest.mark.integration
class TestBayesianEndpoints:
    def test_priors(self, client):
        resp = client.get("/api/analytics/priors")

        assert resp.status_code == 200
        priors = resp.json()
        assert priors["healthcare"]["alpha"] == 4
        assert "default" in priors

    def test_posterior_default_prior(self, client):
        resp = client.post("/api/analytics/bayesian/posterior", json={"passes": 90, "failures": 10})

        assert resp.status_code == 200
        data = resp.json()
        assert data["mean"] == pytest.approx(13 / 150)
        assert len(data["credibleInterval"]) == 2
        assert data["totalEvidence"] == 100

    def test_posterior_industry_and_custom_prior(self, client):
        retail = client.post("/api/analytics/bayesian/posterior", json={"industry": "retail", "failures": 10})
        custom = client.post("/api/analytics/bayesian/posterior", json={"alpha": 1, "beta": 1})

        assert retail.json()["alpha"] == 15
        assert custom.json()["mean"] == pytest.approx(0.5)

    def test_negative_counts_rejected(self, client):
        resp = client.post("/api/analytics/bayesian/posterior", json={"passes": -1})
        assert resp.status_code == 422

    @pytest.mark.parametrize("prior", [{"alpha": 2}, {"beta": 5}, {"industry": "retail", "alpha": 2}])
    def test_half_custom_prior_rejected(self, client, prior):
        posterior = client.post("/api/analytics/bayesian/posterior", json={"failures": 3, **prior})
        fair = client.post(
            "/api/analytics/bayesian/fair",
            json={"threatEventFrequency": 1, "lossMagnitude": 1000, **prior},
        )

        assert posterior.status_code == 422
        assert fair.status_code == 422

    def test_bayesian_fair(self, client):
        resp = client.post(
            "/api/analytics/bayesian/fair",
            json={"passes": 90, "failures": 10, "threatEventFrequency": 4, "lossMagnitude": 1000000},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["annualLossExposure"] == pytest.approx(13 / 150 * 4_000_000)
        assert data["evidenceStrength"] == "strong"

    def test_posterior_time_series(self, client):
        resp = client.post(
            "/api/analytics/bayesian/timeseries",
            json={
                "evidencePoints": [
                    {"timestamp": "2024-01-01T00:00:00Z", "passes": 10},
                    {"timestamp": "2024-02-01T00:00:00Z", "failures": 5},
                ]
            },
        )

        assert resp.status_code == 200
        series = resp.json()
        assert [p["alpha"] for p in series] == [3, 8]


@pytest.mark.integration
class TestCascadeEndpoints:
    def test_cascade(self, client):
        resp = client.post("/api/analytics/cascade", json=GRAPH)

        assert resp.status_code == 200
        data = resp.json()
        assert data["cascadeDepth"] == 2
        assert data["mostVulnerableNode"]["id"] == "IAM-01"
        assert data["edges"][1]["type"] == "data"
        assert data["criticalPaths"][0] == ["IAM-01"]

    def test_duplicate_ids_rejected(self, client):
        resp = client.post(
            "/api/analytics/cascade",
            json={"nodes": [{"id": "A"}, {"id": "A"}], "edges": []},
        )

        assert resp.status_code == 422
        assert "Duplicate" in resp.json()["detail"]

    def test_what_if(self, client):
        resp = client.post("/api/analytics/cascade/what-if", json={**GRAPH, "failedControlId": "IAM-01"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["failedControlName"] == "Identity Management"
        assert {c["id"] for c in data["affectedControls"]} == {"LOG-01", "MON-01"}
        assert data["totalImpact"] == pytest.approx(0.72)

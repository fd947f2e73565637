"""
Unit tests for the risk velocity and momentum engine.

Tests:
- Derivatives are computed on time-sorted copies with zero-interval guards
- Momentum score bounds and trend bands
- Second-order projections floored at zero
- Malformed snapshots are rejected
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.services.analytics.exceptions import AnalyticsInputError
from app.services.analytics.models import MomentumTrend, RiskSnapshot
from app.services.analytics.momentum import (
    calculate_risk_derivatives,
    calculate_risk_momentum,
    classify_momentum,
    project_risk,
)

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _series(*exposures: float, step: timedelta = timedelta(days=1)):
    return [RiskSnapshot(timestamp=START + i * step, risk_exposure=value) for i, value in enumerate(exposures)]


@pytest.mark.unit
class TestRiskDerivatives:
    """Test dR/dt and d2R/dt2 calculation."""

    def test_empty_and_single(self):
        assert calculate_risk_derivatives([]) == []

        points = calculate_risk_derivatives(_series(500))
        assert len(points) == 1
        assert points[0].velocity == 0.0
        assert points[0].acceleration == 0.0

    def test_spike_derivatives(self, spike_snapshots):
        """
        100 -> 150 -> 100 over two days.

        Validates:
        - First point has zero velocity and acceleration
        - Velocity is the per-day change
        - Acceleration uses the mean of both intervals
        """
        points = calculate_risk_derivatives(spike_snapshots)

        assert [p.velocity for p in points] == [0.0, 50.0, -50.0]
        assert [p.acceleration for p in points] == [0.0, 0.0, -100.0]

    def test_fractional_days(self):
        """Velocity is expressed per day regardless of snapshot spacing."""
        points = calculate_risk_derivatives(_series(1000, 1100, step=timedelta(hours=12)))
        assert points[1].velocity == pytest.approx(200.0)

    def test_unsorted_input_is_sorted(self, spike_snapshots):
        shuffled = [spike_snapshots[2], spike_snapshots[0], spike_snapshots[1]]

        assert calculate_risk_derivatives(shuffled) == calculate_risk_derivatives(spike_snapshots)
        # Input order untouched
        assert shuffled[0]["timestamp"] == "2024-01-03T00:00:00Z"

    def test_zero_interval_yields_zero(self):
        same_time = [
            RiskSnapshot(timestamp=START, risk_exposure=100),
            RiskSnapshot(timestamp=START, risk_exposure=900),
            RiskSnapshot(timestamp=START + timedelta(days=1), risk_exposure=1000),
        ]
        points = calculate_risk_derivatives(same_time)

        assert points[1].velocity == 0.0
        assert points[2].velocity == pytest.approx(100.0)
        assert points[2].acceleration == pytest.approx(200.0)

    def test_naive_timestamps_are_utc(self):
        points = calculate_risk_derivatives(
            [
                {"timestamp": "2024-01-01T00:00:00", "riskExposure": 10},
                {"timestamp": "2024-01-02T00:00:00+00:00", "riskExposure": 20},
            ]
        )
        assert points[1].velocity == pytest.approx(10.0)
        assert points[0].timestamp.tzinfo is not None

    def test_timestamps_echo_source_strings(self):
        """
        Points carry their snapshot timestamp exactly as received.

        Validates:
        - Date-only and offset strings serialize unchanged
        - Parsed datetimes are still used for ordering
        - Snapshots built from datetimes serialize as ISO-8601
        """
        points = calculate_risk_derivatives(
            [
                {"timestamp": "2024-01-02T00:00:00+00:00", "riskExposure": 20},
                {"timestamp": "2024-01-01", "riskExposure": 10},
            ]
        )

        assert [p.model_dump(by_alias=True, mode="json")["timestamp"] for p in points] == [
            "2024-01-01",
            "2024-01-02T00:00:00+00:00",
        ]
        assert points[1].velocity == pytest.approx(10.0)
        assert points[0].timestamp == START

        single = calculate_risk_derivatives([{"timestamp": "2024-01-01", "riskExposure": 5}])
        assert single[0].model_dump_json(by_alias=True).startswith('{"timestamp":"2024-01-01",')

        built = calculate_risk_derivatives(_series(5))
        assert built[0].model_dump(mode="json")["timestamp"] == "2024-01-01T00:00:00Z"

    def test_invalid_timestamp_raises(self):
        with pytest.raises(AnalyticsInputError) as exc_info:
            calculate_risk_derivatives([{"timestamp": "not-a-date", "riskExposure": 5}])
        assert exc_info.value.field == "snapshots"

    @pytest.mark.parametrize("exposure", ["100", True, None, float("nan"), float("inf")])
    def test_non_numeric_exposure_raises(self, exposure):
        with pytest.raises(AnalyticsInputError):
            calculate_risk_derivatives([{"timestamp": "2024-01-01T00:00:00Z", "riskExposure": exposure}])

    def test_overflowing_velocity_raises(self):
        """A finite jump over a short interval must not produce an infinite velocity."""
        with pytest.raises(AnalyticsInputError, match="velocity overflows") as exc_info:
            calculate_risk_derivatives(_series(0, 1.7e308, step=timedelta(hours=1)))

        assert exc_info.value.field == "snapshots"
        assert exc_info.value.details["index"] == 1


@pytest.mark.unit
class TestRiskMomentum:
    """Test momentum score, trend classification and projections."""

    def test_empty_input_is_neutral(self):
        """
        No snapshots yields the neutral "No Data" momentum.

        Validates:
        - Score, velocity and projections are zero
        - Trend is stable with the muted presentation
        """
        result = calculate_risk_momentum([])

        assert result.momentum_score == 0.0
        assert result.trend == MomentumTrend.STABLE
        assert result.trend_label == "No Data"
        assert result.trend_color == "muted-foreground"
        assert result.velocity_history == []
        assert result.projected_risk_30_days == 0.0
        assert result.projected_risk_90_days == 0.0

    def test_single_snapshot_projects_flat(self):
        result = calculate_risk_momentum(_series(2500))

        assert result.momentum_score == 0.0
        assert result.trend == MomentumTrend.STABLE
        assert result.trend_label == "Stable"
        assert result.projected_risk_30_days == 2500
        assert result.projected_risk_90_days == 2500

    def test_constant_risk_is_stable(self):
        result = calculate_risk_momentum(_series(1000, 1000, 1000, 1000))

        assert result.momentum_score == 0.0
        assert result.trend == MomentumTrend.STABLE
        assert result.trend_color == "warning"

    def test_rising_risk_is_worsening(self, rising_snapshots):
        """
        $10/day rise from $1000.

        Weighted velocity (0*1 + 10*2 + 10*3 + 10*4) / 10 = 9, normalized by
        the largest exposure (1030) and scaled by 30 days.
        """
        result = calculate_risk_momentum(rising_snapshots)

        assert result.current_velocity == pytest.approx(10.0)
        assert result.current_acceleration == pytest.approx(0.0)
        assert result.momentum_score == pytest.approx(9 / 1030 * 30)
        assert result.trend == MomentumTrend.WORSENING
        assert result.trend_label == "Worsening"
        assert result.trend_color == "destructive"
        assert result.projected_risk_30_days == pytest.approx(1330.0)
        assert result.projected_risk_90_days == pytest.approx(1930.0)
        assert len(result.velocity_history) == 4

    def test_score_is_clamped_and_projection_floored(self, spike_snapshots):
        result = calculate_risk_momentum(spike_snapshots)

        assert result.momentum_score == -1.0
        assert result.trend == MomentumTrend.IMPROVING_FAST
        assert result.trend_label == "Rapidly Improving"
        assert result.projected_risk_30_days == 0.0
        assert result.projected_risk_90_days == 0.0

    def test_window_limits_average(self):
        """A window of one uses only the latest velocity."""
        snapshots = _series(1000, 2000, 2000)
        assert calculate_risk_momentum(snapshots, window_size=1).momentum_score == 0.0
        assert calculate_risk_momentum(snapshots, window_size=7).momentum_score > 0.0

    def test_small_exposures_use_min_normalizer(self):
        """Exposures below 1 normalize by 1 rather than dividing by a tiny maximum."""
        result = calculate_risk_momentum(_series(-10, -10.01))
        assert -1.0 <= result.momentum_score <= 1.0
        assert result.momentum_score == pytest.approx(-0.01 * 2 / 3 * 30)

    def test_invalid_window_raises(self, rising_snapshots):
        with pytest.raises(AnalyticsInputError):
            calculate_risk_momentum(rising_snapshots, window_size=0)

    def test_overflowing_momentum_raises(self):
        with pytest.raises(AnalyticsInputError, match="overflows"):
            calculate_risk_momentum(_series(0, 1.7e308, step=timedelta(hours=1)))

        with pytest.raises(AnalyticsInputError, match="overflows"):
            calculate_risk_momentum(_series(1e307, 1.7e308))

    def test_serializes_with_dashboard_keys(self, rising_snapshots):
        data = calculate_risk_momentum(rising_snapshots).model_dump(by_alias=True)

        assert "projectedRisk30Days" in data
        assert "projectedRisk90Days" in data
        assert "velocityHistory" in data
        assert "riskExposure" in data["velocityHistory"][0]


@pytest.mark.unit
class TestMomentumHelpers:
    """Test trend bands and projections."""

    @pytest.mark.parametrize(
        "score,trend",
        [
            (-1.0, MomentumTrend.IMPROVING_FAST),
            (-0.31, MomentumTrend.IMPROVING_FAST),
            (-0.3, MomentumTrend.IMPROVING),
            (-0.06, MomentumTrend.IMPROVING),
            (-0.05, MomentumTrend.STABLE),
            (0.0, MomentumTrend.STABLE),
            (0.05, MomentumTrend.STABLE),
            (0.06, MomentumTrend.WORSENING),
            (0.3, MomentumTrend.WORSENING),
            (0.31, MomentumTrend.WORSENING_FAST),
            (1.0, MomentumTrend.WORSENING_FAST),
        ],
    )
    def test_trend_bands(self, score, trend):
        assert classify_momentum(score) == trend

    def test_projection(self):
        assert project_risk(1000, 10, 2, 30) == pytest.approx(1000 + 300 + 900)
        assert project_risk(100, -50, 0, 30) == 0.0

    def test_projection_overflow_raises(self):
        with pytest.raises(AnalyticsInputError, match="90 days ahead overflows"):
            project_risk(1.7e308, 1e307, 0, 90)

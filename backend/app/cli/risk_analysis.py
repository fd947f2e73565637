#!/usr/bin/env python3
"""
CLI tool for compliance risk analytics
Runs the entropy, momentum, Bayesian and cascade engines over JSON exports
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.services.analytics import AnalyticsInputError, get_analytics_service
from app.services.analytics.bayesian import get_industry_prior
from app.services.analytics.presentation import format_currency, format_momentum_score, format_velocity

logger = logging.getLogger(__name__)


def load_json(file_path: str) -> Any:
    """Load a JSON document from file."""
    with open(file_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _field(data: Any, key: str, primary: bool = False) -> List[Any]:
    """Read array ``key`` from an object payload; a bare list is the primary array."""
    if isinstance(data, list):
        return data if primary else []
    if not isinstance(data, dict):
        raise AnalyticsInputError(f"Expected a JSON object or array, got {type(data).__name__}", field=key)

    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise AnalyticsInputError(f"'{key}' must be a JSON array, got {type(value).__name__}", field=key)
    return value


def _dump(model: Any) -> Any:
    return model.model_dump(by_alias=True, mode="json")


def entropy_command(args: argparse.Namespace) -> Dict[str, Any]:
    """Compliance Entropy Index, optional per-group breakdown and velocity."""
    analytics = get_analytics_service()
    data = load_json(args.input)

    control_states = _field(data, "controlStates", primary=True)
    report: Dict[str, Any] = {"entropy": _dump(analytics.compliance_entropy(control_states))}

    group_labels = _field(data, "groupLabels")
    if group_labels:
        groups = analytics.conditional_entropy(control_states, group_labels)
        report["groups"] = {label: _dump(result) for label, result in groups.items()}

    history = _field(data, "history")
    if history:
        report["velocity"] = _dump(analytics.entropy_velocity(history, args.window))

    return report


def momentum_command(args: argparse.Namespace) -> Dict[str, Any]:
    """Risk momentum with formatted dashboard values."""
    analytics = get_analytics_service()
    snapshots = _field(load_json(args.input), "snapshots", primary=True)

    momentum = analytics.risk_momentum(snapshots, args.window)
    return {
        "momentum": _dump(momentum),
        "formatted": {
            "velocity": format_velocity(momentum.current_velocity),
            "momentumScore": format_momentum_score(momentum.momentum_score),
            "projectedRisk30Days": format_currency(momentum.projected_risk_30_days),
            "projectedRisk90Days": format_currency(momentum.projected_risk_90_days),
        },
    }


def posterior_command(args: argparse.Namespace) -> Dict[str, Any]:
    """Breach probability posterior and, if loss inputs are given, Bayesian FAIR."""
    analytics = get_analytics_service()
    prior = get_industry_prior(args.industry) if args.industry else analytics.default_prior

    report: Dict[str, Any] = {
        "prior": _dump(prior),
        "posterior": _dump(analytics.posterior(args.passes, args.failures, prior)),
    }
    if args.threat_frequency is not None and args.loss_magnitude is not None:
        fair = analytics.annual_loss_exposure(
            args.passes, args.failures, args.threat_frequency, args.loss_magnitude, prior
        )
        report["fair"] = _dump(fair)
        report["formatted"] = {"annualLossExposure": format_currency(fair.annual_loss_exposure)}
    return report


def cascade_command(args: argparse.Namespace) -> Dict[str, Any]:
    """Cascade risk through the dependency graph and optional what-if failure."""
    analytics = get_analytics_service()
    data = load_json(args.input)
    nodes = _field(data, "nodes")
    edges = _field(data, "edges")

    report: Dict[str, Any] = {"cascade": _dump(analytics.cascade_risk(nodes, edges))}
    if args.what_if:
        report["whatIf"] = _dump(analytics.what_if_failure(nodes, edges, args.what_if))
    return report


def write_report(report: Dict[str, Any], output: Optional[str]) -> None:
    """Write report JSON to ``output`` or stdout."""
    text = json.dumps(report, indent=2)
    if output:
        Path(output).write_text(text + "\n")
        print(f"Report written to {output}")
    else:
        print(text)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Compliance entropy and risk momentum analytics tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compliance Entropy Index with per-framework breakdown
  controlpulse-analyze entropy --input control_states.json

  # Risk momentum over the last 14 snapshots
  controlpulse-analyze momentum --input risk_snapshots.json --window 14

  # Breach posterior and FAIR loss exposure for a healthcare organization
  controlpulse-analyze posterior --passes 180 --failures 12 \\
    --industry healthcare --threat-frequency 4 --loss-magnitude 2500000

  # Cascade risk with a what-if failure of IAM-01
  controlpulse-analyze cascade --input control_graph.json --what-if IAM-01
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    entropy_parser = subparsers.add_parser("entropy", help="Compliance Entropy Index")
    entropy_parser.add_argument(
        "--input",
        required=True,
        help="JSON list of control states, or object with controlStates/groupLabels/history",
    )
    entropy_parser.add_argument("--window", type=int, default=None, help="CEI history window")
    entropy_parser.add_argument("--output", help="Output file for the JSON report")

    momentum_parser = subparsers.add_parser("momentum", help="Risk velocity and momentum")
    momentum_parser.add_argument("--input", required=True, help="JSON list of risk snapshots or {snapshots: [...]}")
    momentum_parser.add_argument("--window", type=int, default=None, help="Momentum window")
    momentum_parser.add_argument("--output", help="Output file for the JSON report")

    posterior_parser = subparsers.add_parser("posterior", help="Bayesian breach probability")
    posterior_parser.add_argument("--passes", type=int, default=0, help="Passed control tests")
    posterior_parser.add_argument("--failures", type=int, default=0, help="Failed control tests")
    posterior_parser.add_argument("--industry", help="Benchmark industry prior")
    posterior_parser.add_argument("--threat-frequency", type=float, help="Threat events per year")
    posterior_parser.add_argument("--loss-magnitude", type=float, help="Loss per successful breach")
    posterior_parser.add_argument("--output", help="Output file for the JSON report")

    cascade_parser = subparsers.add_parser("cascade", help="Cascade risk propagation")
    cascade_parser.add_argument("--input", required=True, help="JSON object with nodes and edges")
    cascade_parser.add_argument("--what-if", help="Control id to force to failure")
    cascade_parser.add_argument("--output", help="Output file for the JSON report")

    return parser


COMMANDS = {
    "entropy": entropy_command,
    "momentum": momentum_command,
    "posterior": posterior_command,
    "cascade": cascade_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        report = COMMANDS[args.command](args)
        write_report(report, getattr(args, "output", None))
        return 0

    except AnalyticsInputError as e:
        print(f"Invalid input: {e}")
        return 1
    except (OSError, ValueError) as e:
        # ValueError covers JSONDecodeError and UnicodeDecodeError
        print(f"Error reading input: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

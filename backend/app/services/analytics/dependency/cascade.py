"""
Analytics Dependency Engine - Cascade Risk Propagation

Models compliance controls as a directed acyclic graph where an edge
parent -> child means the child depends on the parent. When an upstream
control fails, the failure probability propagates downstream:

    For each node v in topological order:
        from_parents(v) = 1 - PRODUCT(1 - strength(u, v) * cascade_risk(u))
        cascade_risk(v) = 1 - (1 - failure_probability(v)) * (1 - from_parents(v))

Root controls carry only their own failure probability.
"""

import logging
from collections import deque
from typing import Dict, List, Mapping, Sequence, Tuple, Union

from pydantic import ValidationError

from ..constants import CRITICAL_PATH_CANDIDATES, CRITICAL_PATH_LIMIT, WHAT_IF_MIN_INCREASE
from ..exceptions import AnalyticsInputError
from ..models import AffectedControl, CascadeResult, GraphEdge, GraphNode, WhatIfResult

logger = logging.getLogger(__name__)

NodeLike = Union[GraphNode, Mapping]
EdgeLike = Union[GraphEdge, Mapping]


def _coerce(model, items, field: str):
    coerced = []
    for index, item in enumerate(items):
        if isinstance(item, model):
            coerced.append(item)
            continue
        try:
            coerced.append(model.model_validate(item))
        except ValidationError as e:
            raise AnalyticsInputError(
                f"Invalid {field} entry at index {index}",
                field=field,
                details=e.errors(include_url=False),
            ) from e
    return coerced


def _known_edges(node_ids: Dict[str, GraphNode], edges: List[GraphEdge]) -> List[GraphEdge]:
    known = [e for e in edges if e.parent_id in node_ids and e.child_id in node_ids]
    if len(known) != len(edges):
        logger.warning(f"Ignoring {len(edges) - len(known)} dependency edges that reference unknown controls")
    return known


def topological_order(nodes: List[GraphNode], edges: List[GraphEdge]) -> List[str]:
    """
    Order node ids with Kahn's algorithm; ties keep input order.

    Nodes that sit on a dependency cycle never reach in-degree zero and are
    left out of the returned order.
    """
    in_degree = {n.id: 0 for n in nodes}
    children: Dict[str, List[str]] = {n.id: [] for n in nodes}

    for edge in edges:
        children[edge.parent_id].append(edge.child_id)
        in_degree[edge.child_id] += 1

    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    ordered: List[str] = []

    while queue:
        node_id = queue.popleft()
        ordered.append(node_id)
        for child_id in children[node_id]:
            in_degree[child_id] -= 1
            if in_degree[child_id] == 0:
                queue.append(child_id)

    if len(ordered) != len(nodes):
        cyclic = sorted(set(in_degree) - set(ordered))
        logger.warning(f"Dependency cycle detected, excluding controls from cascade analysis: {cyclic}")

    return ordered


def _parent_edges(nodes: List[GraphNode], edges: List[GraphEdge]) -> Dict[str, List[GraphEdge]]:
    parents: Dict[str, List[GraphEdge]] = {n.id: [] for n in nodes}
    for edge in edges:
        parents[edge.child_id].append(edge)
    return parents


def _find_critical_paths(
    nodes: List[GraphNode],
    parents: Dict[str, List[GraphEdge]],
) -> List[List[str]]:
    """
    Trace the riskiest dependency chains.

    Starting from the highest-risk controls, walk upstream through the
    riskiest parent until reaching a root; rank paths by mean cascade risk.
    """
    by_id = {n.id: n for n in nodes}
    candidates = sorted(nodes, key=lambda n: n.cascade_risk, reverse=True)[:CRITICAL_PATH_CANDIDATES]
    paths: List[Tuple[List[str], float]] = []

    for start in candidates:
        path = [start.id]
        current = start.id
        while parents.get(current):
            # First parent wins ties
            riskiest = max(parents[current], key=lambda e: by_id[e.parent_id].cascade_risk)
            path.insert(0, riskiest.parent_id)
            current = riskiest.parent_id

        path_risk = sum(by_id[node_id].cascade_risk for node_id in path) / len(path)
        paths.append((path, path_risk))

    paths.sort(key=lambda item: item[1], reverse=True)
    return [path for path, _ in paths[:CRITICAL_PATH_LIMIT]]


def calculate_cascade_risk(nodes: Sequence[NodeLike], edges: Sequence[EdgeLike]) -> CascadeResult:
    """
    Propagate failure risk through the control dependency graph.

    Args:
        nodes: Controls with their own failure probabilities
        edges: Dependencies (parent -> child) with strengths in 0..1

    Returns:
        CascadeResult with per-node cascade risk and depth (topological
        order), the top critical paths and aggregate metrics. Input nodes
        are not modified.

    Raises:
        AnalyticsInputError: If a node or edge record is malformed
    """
    node_list = _coerce(GraphNode, nodes, "nodes")
    edge_list = _coerce(GraphEdge, edges, "edges")

    if not node_list:
        return CascadeResult()

    node_map = {n.id: n for n in node_list}
    if len(node_map) != len(node_list):
        raise AnalyticsInputError("Duplicate control ids in dependency graph", field="nodes")

    edge_list = _known_edges(node_map, edge_list)
    parents = _parent_edges(node_list, edge_list)
    ordered_ids = topological_order(node_list, edge_list)

    # Topological order guarantees parents are resolved before their children
    resolved: Dict[str, GraphNode] = {}
    for node_id in ordered_ids:
        node = node_map[node_id]
        parent_edges = parents[node_id]

        if not parent_edges:
            depth = 0
            cascade_risk = node.failure_probability
        else:
            depth = max(resolved[e.parent_id].depth for e in parent_edges) + 1
            parent_survival = 1.0
            for edge in parent_edges:
                parent_survival *= 1 - edge.strength * resolved[edge.parent_id].cascade_risk
            cascade_from_parents = 1 - parent_survival
            cascade_risk = 1 - (1 - node.failure_probability) * (1 - cascade_from_parents)

        resolved[node_id] = node.model_copy(update={"depth": depth, "cascade_risk": cascade_risk})

    result_nodes = [resolved[node_id] for node_id in ordered_ids]
    if not result_nodes:
        return CascadeResult(edges=edge_list)

    most_vulnerable = max(result_nodes, key=lambda n: n.cascade_risk)
    result = CascadeResult(
        nodes=result_nodes,
        edges=edge_list,
        critical_paths=_find_critical_paths(result_nodes, parents),
        total_cascade_risk=sum(n.cascade_risk for n in result_nodes) / len(result_nodes),
        most_vulnerable_node=most_vulnerable,
        cascade_depth=max(n.depth for n in result_nodes),
    )

    logger.debug(
        f"Cascade risk: mean={result.total_cascade_risk:.3f}, depth={result.cascade_depth}, "
        f"most_vulnerable={most_vulnerable.id} ({len(result_nodes)} controls, {len(edge_list)} edges)"
    )
    return result


def simulate_control_failure(
    nodes: Sequence[NodeLike],
    edges: Sequence[EdgeLike],
    failed_control_id: str,
) -> WhatIfResult:
    """
    Simulate a complete failure of one control.

    Forces the control's failure probability to 1.0 and reports every other
    control whose cascade risk rises by more than 0.01, largest increase first.

    Example:
        >>> what_if = simulate_control_failure(nodes, edges, "IAM-01")
        >>> for control in what_if.affected_controls:
        ...     print(f"{control.name}: +{control.risk_increase:.0%}")
    """
    node_list = _coerce(GraphNode, nodes, "nodes")
    edge_list = _coerce(GraphEdge, edges, "edges")

    original = calculate_cascade_risk(node_list, edge_list)
    original_risk = {n.id: n.cascade_risk for n in original.nodes}

    failed_nodes = [
        n.model_copy(update={"failure_probability": 1.0}) if n.id == failed_control_id else n for n in node_list
    ]
    modified = calculate_cascade_risk(failed_nodes, edge_list)

    affected: List[AffectedControl] = []
    for node in modified.nodes:
        if node.id == failed_control_id:
            continue
        baseline = original_risk.get(node.id, 0.0)
        increase = node.cascade_risk - baseline
        if increase > WHAT_IF_MIN_INCREASE:
            affected.append(
                AffectedControl(
                    id=node.id,
                    name=node.name,
                    original_risk=baseline,
                    new_cascade_risk=node.cascade_risk,
                    risk_increase=increase,
                )
            )
    affected.sort(key=lambda c: c.risk_increase, reverse=True)

    failed_node = next((n for n in node_list if n.id == failed_control_id), None)
    if failed_node is None:
        logger.info(f"What-if simulation for unknown control {failed_control_id}")

    return WhatIfResult(
        failed_control_id=failed_control_id,
        failed_control_name=failed_node.name if failed_node else "Unknown",
        affected_controls=affected,
        total_impact=sum(c.risk_increase for c in affected),
    )

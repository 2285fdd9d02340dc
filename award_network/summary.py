# summary.py
"""
Summary Aggregator for the award network

Single source of truth for portfolio-level statistics shown next to the
graph. A pure reduction over built nodes and edges; recompute it whenever
they change.
"""
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, Optional, Sequence

from .events import EventType
from .models import (
    GeographicReach,
    NetworkEdge,
    NetworkNode,
    NetworkSummary,
    RelationshipTypeCounts,
)


def network_total_value(active_events: Iterable[Dict[str, Any]]) -> float:
    """
    Sum of AWARD_TOTAL_VALUE over distinct awards (first occurrence wins).

    Unlike node and cluster totals, an award counts once here no matter
    how many entities or locations it touches.
    """
    seen: Dict[str, float] = {}
    for event in active_events:
        seen.setdefault(event["AWARD_KEY"], event["AWARD_TOTAL_VALUE"])
    return float(sum(seen.values()))


def summarize_geography(edges: Sequence[NetworkEdge]) -> GeographicReach:
    """
    Distinct states/cities across all edges.

    primary_state is the state present on the most edges; ties go to the
    state encountered first in edge order (Counter.most_common is stable).
    """
    state_counts: Counter = Counter()
    cities = set()
    for edge in edges:
        state_counts.update(edge.geographic.performance_states)
        cities.update(edge.geographic.performance_cities)

    primary = state_counts.most_common(1)
    return GeographicReach(
        states=len(state_counts),
        cities=len(cities),
        primary_state=primary[0][0] if primary else "",
    )


def build_summary(
    nodes: Sequence[NetworkNode],
    edges: Sequence[NetworkEdge],
    active_events: Optional[Iterable[Dict[str, Any]]] = None,
) -> NetworkSummary:
    """
    Reduce a node/edge set into summary statistics.

    relationship_types mixes node-role counts (agencies, primes, subs)
    with the count of SUBSIDIARY_OBLIGATION edges, because subsidiary
    relationships are tracked as a transaction type rather than a role.

    network_total_value is only computed when the active events are given.
    """
    if not nodes and not edges:
        return NetworkSummary()

    main_node = next((n for n in nodes if n.is_main_contractor), None)
    roles = Counter(n.role for n in nodes)

    return NetworkSummary(
        total_active_value=main_node.metrics.total_active_value if main_node else 0.0,
        network_total_value=network_total_value(active_events) if active_events is not None else 0.0,
        total_relationships=len(edges),
        inflow_relationships=sum(1 for e in edges if e.direction == "inflow"),
        outflow_relationships=sum(1 for e in edges if e.direction == "outflow"),
        geographic_reach=summarize_geography(edges),
        relationship_types=RelationshipTypeCounts(
            agencies=roles["agency"],
            primes=roles["prime"],
            subs=roles["sub"],
            subsidiaries=sum(1 for e in edges if e.relationship_type == EventType.SUBSIDIARY_OBLIGATION),
        ),
    )

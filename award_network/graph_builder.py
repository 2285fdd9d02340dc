"""
Award Network: Graph Builder

Turns a flat log of activity events into a relationship graph centred on
one focal contractor.

Pipeline (every stage is a pure function of its inputs):
    raw events -> ordered -> active -> {nodes, edges} -> summary

USAGE:
    from award_network.graph_builder import build_graph

    graph = build_graph(events, focal_uei="C1", as_of="2025-06-01")
    graph.summary.total_relationships
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Tuple

from . import config
from .active_window import filter_active_events, resolve_as_of
from .events import EntityType, EventType, award_window, normalize_events, order_events
from .models import (
    EdgeGeographic,
    EdgeMetrics,
    EdgeTemporal,
    NetworkEdge,
    NetworkGraph,
    NetworkNode,
    NodeLocation,
    NodeMetrics,
)
from .summary import build_summary

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def determine_node_role(entity_type: str, event_type: str) -> str:
    """Role of a related entity: agency > prime > sub > contractor."""
    if entity_type == EntityType.GOVERNMENT:
        return "agency"
    if event_type == EventType.PRIME:
        return "prime"
    if event_type == EventType.SUBAWARD:
        return "sub"
    return "contractor"


def relationship_strength(total_value: float, award_count: int, avg_award_size: float) -> float:
    """
    Blend magnitude, frequency and typical deal size into a 0-100 score.

    Each factor is capped on its own (see config.STRENGTH_*):
        value: $1M = 1 point, up to 100
        count: 10 points per award, up to 50
        size:  $100K average = 1 point, up to 25
    """
    value_score = min(total_value / config.STRENGTH_VALUE_DIVISOR, config.STRENGTH_VALUE_CAP)
    count_score = min(award_count * config.STRENGTH_COUNT_WEIGHT, config.STRENGTH_COUNT_CAP)
    size_score = min(avg_award_size / config.STRENGTH_SIZE_DIVISOR, config.STRENGTH_SIZE_CAP)
    return max(0.0, min(value_score + count_score + size_score, config.STRENGTH_MAX))


def _distinct(values: Iterable[str]) -> Tuple[str, ...]:
    """Distinct non-empty values in first-seen order."""
    return tuple(dict.fromkeys(v for v in values if v))


# =============================================================================
# Node Builder
# =============================================================================

def build_nodes(active_events: List[Dict[str, Any]], focal_uei: str) -> Tuple[NetworkNode, ...]:
    """
    One node per distinct entity identifier, in first-seen order.

    The first event that mentions an entity fixes its name, location and
    role. Metrics then cover every event touching the entity on either
    side:
      - total_active_value: sum of AWARD_TOTAL_VALUE (each side carries the
        full award value, i.e. the entity's own exposure)
      - active_awards_count: distinct AWARD_KEY
      - relationship_count: distinct entities on the opposite side
    """
    registered: Dict[str, dict] = {}

    for event in active_events:
        contractor_uei = event["CONTRACTOR_UEI"]
        if contractor_uei not in registered:
            registered[contractor_uei] = {
                "name": event["CONTRACTOR_NAME"],
                "role": "contractor",
                "location": NodeLocation(state=event["CONTRACTOR_STATE"], city=event["CONTRACTOR_CITY"]),
            }

        related_uei = event["RELATED_ENTITY_UEI"]
        if related_uei not in registered:
            registered[related_uei] = {
                "name": event["RELATED_ENTITY_NAME"],
                "role": determine_node_role(event["RELATED_ENTITY_TYPE"], event["EVENT_TYPE"]),
                "location": NodeLocation(state=event["PERFORMANCE_STATE"], city=event["PERFORMANCE_CITY"]),
            }

    totals = defaultdict(float)
    awards = defaultdict(set)
    partners = defaultdict(set)

    for event in active_events:
        source, target = event["CONTRACTOR_UEI"], event["RELATED_ENTITY_UEI"]
        # A self-referencing event touches its entity once
        for uei in {source, target}:
            totals[uei] += event["AWARD_TOTAL_VALUE"]
            awards[uei].add(event["AWARD_KEY"])
            if source != target:
                partners[uei].add(target if uei == source else source)

    nodes = []
    for uei, info in registered.items():
        nodes.append(NetworkNode(
            uei=uei,
            name=info["name"],
            role=info["role"],
            location=info["location"],
            metrics=NodeMetrics(
                total_active_value=totals[uei],
                active_awards_count=len(awards[uei]),
                relationship_count=len(partners[uei]),
            ),
            is_main_contractor=(uei == focal_uei),
        ))

    return tuple(nodes)


# =============================================================================
# Edge Builder
# =============================================================================

def _build_edge(source: str, target: str, group: List[Dict[str, Any]], focal_uei: str) -> NetworkEdge:
    first = group[0]
    relationship_type = first["EVENT_TYPE"]

    seen_types = _distinct(e["EVENT_TYPE"] for e in group)
    conflicting = seen_types if len(seen_types) > 1 else ()
    if conflicting:
        logger.warning(
            f"Edge {source}->{target}: events disagree on relationship type {list(conflicting)}; "
            f"using first event's type {relationship_type!r}"
        )

    award_keys = {e["AWARD_KEY"] for e in group}
    active_awards = len(award_keys)
    total_value = sum(e["AWARD_TOTAL_VALUE"] for e in group)
    avg_award_size = total_value / active_awards if active_awards else 0.0

    windows = [award_window(e) for e in group]

    return NetworkEdge(
        id=f"{source}->{target}",
        source=source,
        target=target,
        direction="outflow" if source == focal_uei else "inflow",
        relationship_type=relationship_type,
        metrics=EdgeMetrics(
            active_awards=active_awards,
            total_value=total_value,
            strength=relationship_strength(total_value, active_awards, avg_award_size),
            avg_award_size=avg_award_size,
        ),
        geographic=EdgeGeographic(
            performance_states=_distinct(e["PERFORMANCE_STATE"] for e in group),
            performance_cities=_distinct(e["PERFORMANCE_CITY"] for e in group),
        ),
        temporal=EdgeTemporal(
            earliest_start=min(start for start, _ in windows),
            latest_end=max(end for _, end in windows),
            is_currently_active=True,
        ),
        conflicting_types=conflicting,
    )


def build_edges(active_events: List[Dict[str, Any]], focal_uei: str) -> Tuple[NetworkEdge, ...]:
    """
    One directed edge per (CONTRACTOR_UEI, RELATED_ENTITY_UEI) pair.

    Groups keep the relative order of the events, so relationship_type is
    the type of the earliest event once order_events() has been applied.
    Events must have parseable award windows (i.e. come from
    filter_active_events).
    """
    groups: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
    for event in active_events:
        key = (event["CONTRACTOR_UEI"], event["RELATED_ENTITY_UEI"])
        groups.setdefault(key, []).append(event)

    return tuple(
        _build_edge(source, target, group, focal_uei)
        for (source, target), group in groups.items()
    )


# =============================================================================
# Main Entry Point
# =============================================================================

def build_graph(events, focal_uei: str, as_of=None) -> NetworkGraph:
    """
    Build the network graph for one focal contractor.

    Args:
        events: DataFrame or iterable of activity event mappings
        focal_uei: Identifier of the focal contractor
        as_of: Reference time for the active window (default: now, UTC)

    Returns:
        NetworkGraph with nodes, edges, main_contractor (None when the focal
        entity has no active events) and summary
    """
    as_of = resolve_as_of(as_of)
    ordered = order_events(normalize_events(events))
    active = filter_active_events(ordered, as_of)

    nodes = build_nodes(active, focal_uei)
    edges = build_edges(active, focal_uei)
    main_contractor = next((n for n in nodes if n.is_main_contractor), None)
    summary = build_summary(nodes, edges, active)

    logger.info(
        f"Built network for {focal_uei}: {len(ordered)} events, {len(active)} active, "
        f"{len(nodes)} nodes, {len(edges)} edges"
    )

    return NetworkGraph(nodes=nodes, edges=edges, main_contractor=main_contractor, summary=summary)

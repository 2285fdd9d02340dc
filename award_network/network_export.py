"""
Network Export utilities for the Award Network Engine

Converts a built NetworkGraph into canonical node/edge/cluster tables, a
networkx DiGraph, and an on-disk bundle.

Canonical Schema v1:
- nodes.csv: one row per entity
- edges.csv: one row per (source, target) relationship
- clusters.csv: one row per (state, city) cluster
- summary.json: NetworkSummary

File I/O lives only here and in scripts/; the graph core stays pure.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import networkx as nx
import pandas as pd

from .events import EVENT_COLUMNS, events_to_df
from .models import GeographicCluster, NetworkGraph

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

NODE_COLUMNS = [
    "node_id", "label", "role", "is_main_contractor",
    "state", "city",
    "total_active_value", "active_awards_count", "relationship_count",
]

EDGE_COLUMNS = [
    "edge_id", "from_id", "to_id", "direction", "relationship_type",
    "active_awards", "total_value", "strength", "avg_award_size",
    "performance_states", "performance_cities",
    "earliest_start", "latest_end", "is_currently_active",
    "conflicting_types",
]

CLUSTER_COLUMNS = [
    "state", "city", "lng", "lat", "total_value", "node_count", "edge_count", "edge_ids",
]

LIST_SEPARATOR = "|"


# =============================================================================
# DataFrames
# =============================================================================

def build_nodes_df(graph: NetworkGraph) -> pd.DataFrame:
    """Nodes as a DataFrame with canonical column order."""
    rows = [
        {
            "node_id": n.uei,
            "label": n.name,
            "role": n.role,
            "is_main_contractor": n.is_main_contractor,
            "state": n.location.state,
            "city": n.location.city,
            "total_active_value": n.metrics.total_active_value,
            "active_awards_count": n.metrics.active_awards_count,
            "relationship_count": n.metrics.relationship_count,
        }
        for n in graph.nodes
    ]
    if rows:
        return pd.DataFrame(rows).reindex(columns=NODE_COLUMNS)
    return pd.DataFrame(columns=NODE_COLUMNS)


def build_edges_df(graph: NetworkGraph) -> pd.DataFrame:
    """Edges as a DataFrame; list fields are joined with '|'."""
    rows = [
        {
            "edge_id": e.id,
            "from_id": e.source,
            "to_id": e.target,
            "direction": e.direction,
            "relationship_type": e.relationship_type,
            "active_awards": e.metrics.active_awards,
            "total_value": e.metrics.total_value,
            "strength": e.metrics.strength,
            "avg_award_size": e.metrics.avg_award_size,
            "performance_states": LIST_SEPARATOR.join(e.geographic.performance_states),
            "performance_cities": LIST_SEPARATOR.join(e.geographic.performance_cities),
            "earliest_start": e.temporal.earliest_start.isoformat(),
            "latest_end": e.temporal.latest_end.isoformat(),
            "is_currently_active": e.temporal.is_currently_active,
            "conflicting_types": LIST_SEPARATOR.join(e.conflicting_types),
        }
        for e in graph.edges
    ]
    if rows:
        return pd.DataFrame(rows).reindex(columns=EDGE_COLUMNS)
    return pd.DataFrame(columns=EDGE_COLUMNS)


def build_clusters_df(clusters: Sequence[GeographicCluster]) -> pd.DataFrame:
    rows = [
        {
            "state": c.state,
            "city": c.city,
            "lng": c.coordinates[0],
            "lat": c.coordinates[1],
            "total_value": c.total_value,
            "node_count": c.node_count,
            "edge_count": len(c.relationships),
            "edge_ids": LIST_SEPARATOR.join(e.id for e in c.relationships),
        }
        for c in clusters
    ]
    if rows:
        return pd.DataFrame(rows).reindex(columns=CLUSTER_COLUMNS)
    return pd.DataFrame(columns=CLUSTER_COLUMNS)


# =============================================================================
# Graph
# =============================================================================

def to_networkx(graph: NetworkGraph) -> nx.DiGraph:
    """Directed graph with node metrics and edge metrics as attributes."""
    G = nx.DiGraph()

    for n in graph.nodes:
        G.add_node(
            n.uei,
            label=n.name,
            role=n.role,
            is_main_contractor=n.is_main_contractor,
            state=n.location.state,
            city=n.location.city,
            total_active_value=n.metrics.total_active_value,
            active_awards_count=n.metrics.active_awards_count,
            relationship_count=n.metrics.relationship_count,
        )

    for e in graph.edges:
        G.add_edge(
            e.source,
            e.target,
            edge_id=e.id,
            direction=e.direction,
            relationship_type=e.relationship_type,
            weight=e.metrics.strength,
            total_value=e.metrics.total_value,
            active_awards=e.metrics.active_awards,
        )

    return G


# =============================================================================
# Files
# =============================================================================

def read_events_csv(path) -> List[Dict]:
    """
    Read an activity events CSV into normalized records.

    All columns are read as text so identifiers keep leading zeros;
    amounts are coerced by the event schema.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [c for c in EVENT_COLUMNS if c not in df.columns]
    if missing:
        logger.warning(f"{path}: missing columns filled with defaults: {missing}")
    return events_to_df(df.to_dict("records")).to_dict("records")


def write_network_bundle(
    graph: NetworkGraph,
    out_dir,
    clusters: Optional[Sequence[GeographicCluster]] = None,
) -> Dict[str, Path]:
    """
    Write nodes.csv, edges.csv, clusters.csv (when given) and summary.json.

    Returns:
        Mapping of artifact name -> written path
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        "nodes": out_dir / "nodes.csv",
        "edges": out_dir / "edges.csv",
        "summary": out_dir / "summary.json",
    }
    build_nodes_df(graph).to_csv(paths["nodes"], index=False)
    build_edges_df(graph).to_csv(paths["edges"], index=False)

    if clusters is not None:
        paths["clusters"] = out_dir / "clusters.csv"
        build_clusters_df(clusters).to_csv(paths["clusters"], index=False)

    summary = graph.summary.to_dict()
    summary["main_contractor"] = graph.main_contractor.uei if graph.main_contractor else ""
    paths["summary"].write_text(json.dumps(summary, indent=2, sort_keys=True), encoding="utf-8")

    logger.info(f"Wrote network bundle to {out_dir}: {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return paths

"""
Award Network: Output Schema Dataclasses

Graph, summary, cluster, and filter structures read by the presentation
layer. All are frozen: a new input produces a new graph, and nothing
downstream mutates an upstream structure. Sequence fields are tuples so
that edge sets and filter criteria are hashable and can key a cache.

VERSION HISTORY:
----------------
v1.0.0: Initial release
- NetworkNode / NetworkEdge with nested metrics, geography, temporal
- NetworkSummary with per-relationship and network-wide totals
- GeographicCluster with injected coordinates
- NetworkFilters value object
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, Tuple

# =============================================================================
# Version
# =============================================================================

# Versioned schema contract - increment when output structure changes
NETWORK_SCHEMA_VERSION = "1.0"

# =============================================================================
# Type Definitions
# =============================================================================

NodeRole = Literal["contractor", "agency", "prime", "sub"]
EdgeDirection = Literal["inflow", "outflow"]
Coordinates = Tuple[float, float]  # (lng, lat)


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value is not None else ""


def _finite(value: float) -> Optional[float]:
    """Unbounded limits serialize as None."""
    return None if math.isinf(value) else value


# =============================================================================
# Nodes
# =============================================================================

@dataclass(frozen=True)
class NodeLocation:
    state: str = ""
    city: str = ""

    def to_dict(self) -> dict:
        return {"state": self.state, "city": self.city}


@dataclass(frozen=True)
class NodeMetrics:
    """Per-entity exposure over all active events touching the entity."""
    total_active_value: float = 0.0  # sum of award totals; attributed per side, not a network total
    active_awards_count: int = 0
    relationship_count: int = 0

    def to_dict(self) -> dict:
        return {
            "total_active_value": self.total_active_value,
            "active_awards_count": self.active_awards_count,
            "relationship_count": self.relationship_count,
        }


@dataclass(frozen=True)
class NetworkNode:
    """One distinct entity (focal contractor or counterparty)."""
    uei: str
    name: str
    role: NodeRole
    location: NodeLocation = field(default_factory=NodeLocation)
    metrics: NodeMetrics = field(default_factory=NodeMetrics)
    is_main_contractor: bool = False

    def to_dict(self) -> dict:
        return {
            "uei": self.uei,
            "name": self.name,
            "role": self.role,
            "location": self.location.to_dict(),
            "metrics": self.metrics.to_dict(),
            "is_main_contractor": self.is_main_contractor,
        }


# =============================================================================
# Edges
# =============================================================================

@dataclass(frozen=True)
class EdgeMetrics:
    active_awards: int
    total_value: float
    strength: float  # 0-100
    avg_award_size: float

    def to_dict(self) -> dict:
        return {
            "active_awards": self.active_awards,
            "total_value": self.total_value,
            "strength": self.strength,
            "avg_award_size": self.avg_award_size,
        }


@dataclass(frozen=True)
class EdgeGeographic:
    performance_states: Tuple[str, ...] = ()
    performance_cities: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "performance_states": list(self.performance_states),
            "performance_cities": list(self.performance_cities),
        }


@dataclass(frozen=True)
class EdgeTemporal:
    earliest_start: datetime
    latest_end: datetime
    is_currently_active: bool = True  # edges are built from active events only

    def to_dict(self) -> dict:
        return {
            "earliest_start": _iso(self.earliest_start),
            "latest_end": _iso(self.latest_end),
            "is_currently_active": self.is_currently_active,
        }


@dataclass(frozen=True)
class NetworkEdge:
    """All active events between one (source, target) pair."""
    id: str
    source: str
    target: str
    direction: EdgeDirection
    relationship_type: str
    metrics: EdgeMetrics
    geographic: EdgeGeographic
    temporal: EdgeTemporal
    # All distinct event types seen in the group when they disagree; empty otherwise
    conflicting_types: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "direction": self.direction,
            "relationship_type": self.relationship_type,
            "metrics": self.metrics.to_dict(),
            "geographic": self.geographic.to_dict(),
            "temporal": self.temporal.to_dict(),
            "conflicting_types": list(self.conflicting_types),
        }


# =============================================================================
# Summary
# =============================================================================

@dataclass(frozen=True)
class GeographicReach:
    states: int = 0
    cities: int = 0
    primary_state: str = ""

    def to_dict(self) -> dict:
        return {"states": self.states, "cities": self.cities, "primary_state": self.primary_state}


@dataclass(frozen=True)
class RelationshipTypeCounts:
    """Node-role counts plus the SUBSIDIARY_OBLIGATION edge count."""
    agencies: int = 0
    primes: int = 0
    subs: int = 0
    subsidiaries: int = 0  # edge count, not a node role

    def to_dict(self) -> dict:
        return {
            "agencies": self.agencies,
            "primes": self.primes,
            "subs": self.subs,
            "subsidiaries": self.subsidiaries,
        }


@dataclass(frozen=True)
class NetworkSummary:
    total_active_value: float = 0.0    # focal node exposure (per-relationship attribution)
    network_total_value: float = 0.0   # sum over distinct awards, no duplication
    total_relationships: int = 0
    inflow_relationships: int = 0
    outflow_relationships: int = 0
    geographic_reach: GeographicReach = field(default_factory=GeographicReach)
    relationship_types: RelationshipTypeCounts = field(default_factory=RelationshipTypeCounts)

    def to_dict(self) -> dict:
        return {
            "total_active_value": self.total_active_value,
            "network_total_value": self.network_total_value,
            "total_relationships": self.total_relationships,
            "inflow_relationships": self.inflow_relationships,
            "outflow_relationships": self.outflow_relationships,
            "geographic_reach": self.geographic_reach.to_dict(),
            "relationship_types": self.relationship_types.to_dict(),
        }


# =============================================================================
# Graph
# =============================================================================

@dataclass(frozen=True)
class NetworkGraph:
    nodes: Tuple[NetworkNode, ...]
    edges: Tuple[NetworkEdge, ...]
    main_contractor: Optional[NetworkNode]
    summary: NetworkSummary

    def to_dict(self) -> dict:
        return {
            "schema_version": NETWORK_SCHEMA_VERSION,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "main_contractor": self.main_contractor.to_dict() if self.main_contractor else None,
            "summary": self.summary.to_dict(),
        }


# =============================================================================
# Geographic Clusters
# =============================================================================

@dataclass(frozen=True)
class GeographicCluster:
    """
    Aggregation bucket keyed by (state, city).

    total_value is per-location attribution: an edge spanning several
    locations adds its full value to each of them, so cluster totals do
    not sum to a network total.
    """
    state: str
    city: str
    coordinates: Coordinates
    relationships: Tuple[NetworkEdge, ...]
    total_value: float
    node_count: int

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "city": self.city,
            "coordinates": list(self.coordinates),
            "relationship_ids": [e.id for e in self.relationships],
            "total_value": self.total_value,
            "node_count": self.node_count,
        }


# =============================================================================
# Filters
# =============================================================================

@dataclass(frozen=True)
class NetworkFilters:
    """
    Filter criteria value object.

    Empty allow-lists allow everything. Time bounds of None are open.
    Lists passed in are stored as tuples so the criteria stay hashable.
    """
    relationship_types: Tuple[str, ...] = ()
    min_value: float = 0.0
    max_value: float = math.inf
    states: Tuple[str, ...] = ()
    active_only: bool = True
    time_start: Optional[datetime] = None
    time_end: Optional[datetime] = None
    as_of: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "relationship_types", tuple(self.relationship_types or ()))
        object.__setattr__(self, "states", tuple(self.states or ()))

    def to_dict(self) -> dict:
        return {
            "relationship_types": list(self.relationship_types),
            "min_value": _finite(self.min_value),
            "max_value": _finite(self.max_value),
            "states": list(self.states),
            "active_only": self.active_only,
            "time_start": _iso(self.time_start),
            "time_end": _iso(self.time_end),
            "as_of": _iso(self.as_of),
        }

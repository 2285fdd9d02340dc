"""
Geographic Clustering
=====================
Groups (optionally filtered) edges into (state, city) buckets for map
views.

Fan-out is intentional: an edge performing in 2 states x 2 cities joins 4
clusters and adds its full total_value to each. Cluster totals are
per-location attribution, not a network total (see
summary.network_total_value for that).
"""

import logging
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from . import config
from .filters import apply_filters
from .models import Coordinates, GeographicCluster, NetworkEdge, NetworkFilters

logger = logging.getLogger(__name__)


class CoordinateLookup:
    """
    Read-only coordinate table with fallback:
    exact (state, city) -> state -> default.

    Keys are upper-cased state codes and (state, city) pairs.
    """

    def __init__(
        self,
        states: Optional[Mapping[str, Coordinates]] = None,
        cities: Optional[Mapping[Tuple[str, str], Coordinates]] = None,
        default: Coordinates = config.US_CENTER_COORDINATES,
    ):
        if states is None:
            states = config.DEFAULT_STATE_COORDINATES
        self._states = MappingProxyType({s.upper(): tuple(c) for s, c in states.items()})
        self._cities = MappingProxyType({
            (s.upper(), c.upper()): tuple(coords) for (s, c), coords in (cities or {}).items()
        })
        self._default = tuple(default)

    def lookup(self, state: str, city: str = "") -> Coordinates:
        state_key = (state or "").upper()
        exact = self._cities.get((state_key, (city or "").upper()))
        if exact is not None:
            return exact
        return self._states.get(state_key, self._default)


DEFAULT_COORDINATES = CoordinateLookup()


def _cluster_keys(edge: NetworkEdge) -> List[Tuple[str, str]]:
    """Cross product of an edge's states and cities; empty when either side is empty."""
    states = edge.geographic.performance_states
    cities = edge.geographic.performance_cities
    return [(state, city) for state in states for city in cities]


def build_geographic_clusters(
    edges: Iterable[NetworkEdge],
    filters: Optional[NetworkFilters] = None,
    coordinates: Optional[CoordinateLookup] = None,
) -> List[GeographicCluster]:
    """
    Build clusters sorted by total_value, descending.

    Args:
        edges: Edge set (typically graph.edges)
        filters: Optional criteria applied before clustering
        coordinates: Coordinate table (default: DEFAULT_COORDINATES)

    Returns:
        One GeographicCluster per (state, city); node_count is the number
        of distinct source/target identifiers among the cluster's edges.
    """
    coordinates = coordinates or DEFAULT_COORDINATES
    filtered = apply_filters(edges, filters)

    buckets: Dict[Tuple[str, str], dict] = {}
    for edge in filtered:
        for key in _cluster_keys(edge):
            bucket = buckets.setdefault(key, {"edges": [], "total_value": 0.0, "node_ids": set()})
            bucket["edges"].append(edge)
            bucket["total_value"] += edge.metrics.total_value
            bucket["node_ids"].update((edge.source, edge.target))

    clusters = [
        GeographicCluster(
            state=state,
            city=city,
            coordinates=coordinates.lookup(state, city),
            relationships=tuple(bucket["edges"]),
            total_value=bucket["total_value"],
            node_count=len(bucket["node_ids"]),
        )
        for (state, city), bucket in buckets.items()
    ]
    # sorted() is stable: equal totals keep first-seen order
    clusters = sorted(clusters, key=lambda c: c.total_value, reverse=True)

    logger.debug(f"Built {len(clusters)} clusters from {len(filtered)} edges")
    return clusters


@lru_cache(maxsize=config.CLUSTER_CACHE_SIZE)
def build_geographic_clusters_cached(
    edges: Tuple[NetworkEdge, ...],
    filters: Optional[NetworkFilters] = None,
    coordinates: Optional[CoordinateLookup] = None,
) -> Tuple[GeographicCluster, ...]:
    """
    Memoized clustering keyed on (edge tuple, criteria, lookup identity).

    Returns a tuple so cached results cannot be modified by callers.
    """
    return tuple(build_geographic_clusters(edges, filters, coordinates))

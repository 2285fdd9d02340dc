"""
Filter Pipeline for network edges

An edge passes when every active criterion passes:
  - relationship type in the allow-list (empty list = allow all)
  - min_value <= total_value <= max_value
  - at least one performance state in the allow-list (empty = allow all)
  - edge window overlaps [time_start, time_end] (None = open bound)
  - active_only: edge is active at filters.as_of, or flagged active when
    no as_of is given

Filtering never mutates; it returns a new tuple.
"""

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Iterable, Optional, Tuple

from . import config
from .active_window import resolve_as_of
from .events import to_utc_datetime
from .models import NetworkEdge, NetworkFilters

logger = logging.getLogger(__name__)


def default_network_filters(as_of=None) -> NetworkFilters:
    """Everything allowed, time window = the year ending at as_of."""
    end = resolve_as_of(as_of)
    return NetworkFilters(
        time_start=end - timedelta(days=config.DEFAULT_FILTER_LOOKBACK_DAYS),
        time_end=end,
    )


def _passes_active(edge: NetworkEdge, filters: NetworkFilters) -> bool:
    if not filters.active_only:
        return True
    as_of = to_utc_datetime(filters.as_of)
    if as_of is None:
        return edge.temporal.is_currently_active
    return edge.temporal.earliest_start <= as_of <= edge.temporal.latest_end


def edge_passes(edge: NetworkEdge, filters: NetworkFilters) -> bool:
    if filters.relationship_types and edge.relationship_type not in filters.relationship_types:
        return False

    total = edge.metrics.total_value
    if total < filters.min_value or total > filters.max_value:
        return False

    if filters.states and not any(s in filters.states for s in edge.geographic.performance_states):
        return False

    start = to_utc_datetime(filters.time_start)
    end = to_utc_datetime(filters.time_end)
    if start is not None and edge.temporal.latest_end < start:
        return False
    if end is not None and edge.temporal.earliest_start > end:
        return False

    return _passes_active(edge, filters)


def apply_filters(edges: Iterable[NetworkEdge], filters: Optional[NetworkFilters]) -> Tuple[NetworkEdge, ...]:
    """Return the edges passing all criteria, in their original order."""
    edges = tuple(edges)
    if filters is None:
        return edges
    kept = tuple(e for e in edges if edge_passes(e, filters))
    logger.debug(f"Filters kept {len(kept)} of {len(edges)} edges")
    return kept


@lru_cache(maxsize=config.FILTER_CACHE_SIZE)
def apply_filters_cached(edges: Tuple[NetworkEdge, ...], filters: Optional[NetworkFilters]) -> Tuple[NetworkEdge, ...]:
    """Memoized apply_filters keyed on (edge tuple, criteria)."""
    return apply_filters(edges, filters)

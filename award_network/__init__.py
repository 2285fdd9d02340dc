# Award Network Engine
# Relationship graph and analytics for one focal contractor's award activity
from . import config
from . import events
from . import models
from . import active_window
from . import graph_builder
from . import summary
from . import filters
from . import clustering
from . import distribution
from . import network_export

from .active_window import filter_active_events
from .clustering import CoordinateLookup, build_geographic_clusters, build_geographic_clusters_cached
from .distribution import process_network_distribution
from .events import MalformedEventError
from .filters import apply_filters, apply_filters_cached, default_network_filters
from .graph_builder import build_edges, build_graph, build_nodes, relationship_strength
from .models import (
    GeographicCluster,
    NetworkEdge,
    NetworkFilters,
    NetworkGraph,
    NetworkNode,
    NetworkSummary,
)
from .summary import build_summary

__version__ = "1.0.0"

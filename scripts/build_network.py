"""
Award Network Build Script

Builds the relationship graph for one focal contractor from an activity
events CSV and writes the export bundle.

Usage:
    python scripts/build_network.py events.csv --focal C1 --out output/C1
    python scripts/build_network.py events.csv --focal C1 --as-of 2025-06-01 --states VA TX

Output:
    nodes.csv, edges.csv, clusters.csv, summary.json in --out
"""

import argparse
import logging
import sys
from pathlib import Path

from award_network.clustering import build_geographic_clusters
from award_network.graph_builder import build_graph
from award_network.models import NetworkFilters
from award_network.network_export import read_events_csv, write_network_bundle


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        description="Build an award relationship network for one focal contractor."
    )
    ap.add_argument("events_path", type=Path, help="Path to activity events CSV")
    ap.add_argument("--focal", required=True, help="Focal contractor UEI")
    ap.add_argument("--as-of", default=None,
                    help="Reference date for the active window (default: now, UTC)")
    ap.add_argument("--out", type=Path, default=Path("output"), help="Output directory")
    ap.add_argument("--types", nargs="*", default=[],
                    help="Relationship types to keep in clusters (default: all)")
    ap.add_argument("--states", nargs="*", default=[],
                    help="Performance states to keep in clusters (default: all)")
    ap.add_argument("--min-value", type=float, default=0.0,
                    help="Minimum edge total value for clusters")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if not args.events_path.exists():
        print(f"ERROR: File not found: {args.events_path}", file=sys.stderr)
        return 2

    events = read_events_csv(args.events_path)
    graph = build_graph(events, args.focal, as_of=args.as_of)

    filters = NetworkFilters(
        relationship_types=args.types,
        states=args.states,
        min_value=args.min_value,
        active_only=False,
    )
    clusters = build_geographic_clusters(graph.edges, filters)
    paths = write_network_bundle(graph, args.out, clusters=clusters)

    s = graph.summary
    print(f"Focal: {args.focal}")
    print(f"Nodes: {len(graph.nodes)}, Edges: {len(graph.edges)}")
    print(f"Inflow: {s.inflow_relationships}, Outflow: {s.outflow_relationships}")
    print(f"States: {s.geographic_reach.states} (primary: {s.geographic_reach.primary_state or '-'})")
    print(f"Clusters: {len(clusters)}")
    for name, path in paths.items():
        print(f"  {name}: {path}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

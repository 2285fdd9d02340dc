"""
Tests for the filter pipeline and geographic clustering.
"""

import json
import unittest
from datetime import datetime, timedelta, timezone

from award_network import config
from award_network.clustering import (
    CoordinateLookup,
    build_geographic_clusters,
    build_geographic_clusters_cached,
)
from award_network.filters import (
    apply_filters,
    apply_filters_cached,
    default_network_filters,
    edge_passes,
)
from award_network.graph_builder import build_graph
from award_network.models import NetworkFilters
from award_network.test_graph_builder import AS_OF, make_event


def sample_graph():
    """Three outflow edges: G1 (PRIME, VA, $10M), P1 (SUBAWARD, TX, $2M), S1 (SUBSIDIARY, MD, $500K)."""
    events = [
        make_event(EVENT_ID="1"),
        make_event(EVENT_ID="2", RELATED_ENTITY_UEI="P1", RELATED_ENTITY_TYPE="CONTRACTOR",
                   EVENT_TYPE="SUBAWARD", AWARD_KEY="AW2", AWARD_TOTAL_VALUE=2_000_000,
                   PERFORMANCE_STATE="TX", PERFORMANCE_CITY="Austin",
                   AWARD_START_DATE="2025-03-01", AWARD_END_DATE="2025-09-30"),
        make_event(EVENT_ID="3", RELATED_ENTITY_UEI="S1", RELATED_ENTITY_TYPE="CONTRACTOR",
                   EVENT_TYPE="SUBSIDIARY_OBLIGATION", AWARD_KEY="AW3", AWARD_TOTAL_VALUE=500_000,
                   PERFORMANCE_STATE="MD", PERFORMANCE_CITY="Baltimore"),
    ]
    return build_graph(events, "C1", as_of=AS_OF)


def targets(edges):
    return {e.target for e in edges}


class TestFilters(unittest.TestCase):

    def setUp(self):
        self.graph = sample_graph()
        self.edges = self.graph.edges

    def test_no_criteria_keeps_everything(self):
        self.assertEqual(apply_filters(self.edges, NetworkFilters()), self.edges)
        self.assertEqual(apply_filters(self.edges, None), self.edges)

    def test_relationship_types(self):
        kept = apply_filters(self.edges, NetworkFilters(relationship_types=["PRIME", "SUBAWARD"]))
        self.assertEqual(targets(kept), {"G1", "P1"})

    def test_value_range_inclusive(self):
        kept = apply_filters(self.edges, NetworkFilters(min_value=500_000, max_value=2_000_000))
        self.assertEqual(targets(kept), {"P1", "S1"})
        self.assertEqual(apply_filters(self.edges, NetworkFilters(min_value=5, max_value=1)), ())

    def test_states(self):
        kept = apply_filters(self.edges, NetworkFilters(states=["TX", "CA"]))
        self.assertEqual(targets(kept), {"P1"})

    def test_time_overlap(self):
        def window(start, end):
            return NetworkFilters(
                time_start=datetime(*start, tzinfo=timezone.utc),
                time_end=datetime(*end, tzinfo=timezone.utc),
                active_only=False,
            )
        self.assertEqual(targets(apply_filters(self.edges, window((2025, 10, 1), (2025, 12, 31)))), {"G1", "S1"})
        self.assertEqual(apply_filters(self.edges, window((2023, 1, 1), (2023, 12, 31))), ())
        self.assertEqual(len(apply_filters(self.edges, window((2025, 4, 1), (2025, 5, 1)))), 3)

    def test_string_time_bounds(self):
        kept = apply_filters(self.edges, NetworkFilters(time_start="2025-10-01", time_end="2025-12-31"))
        self.assertEqual(targets(kept), {"G1", "S1"})

    def test_active_only(self):
        later = datetime(2025, 11, 1, tzinfo=timezone.utc)
        self.assertEqual(targets(apply_filters(self.edges, NetworkFilters(as_of=later))), {"G1", "S1"})
        self.assertEqual(len(apply_filters(self.edges, NetworkFilters(as_of=later, active_only=False))), 3)
        # Without as_of the build-time flag decides
        self.assertEqual(len(apply_filters(self.edges, NetworkFilters(active_only=True))), 3)

    def test_subset_and_monotonic(self):
        strict = NetworkFilters(relationship_types=["PRIME", "SUBAWARD"], min_value=1_000_000, max_value=5_000_000)
        loose = NetworkFilters(relationship_types=["PRIME", "SUBAWARD"], min_value=1_000_000)
        strict_ids = {e.id for e in apply_filters(self.edges, strict)}
        loose_ids = {e.id for e in apply_filters(self.edges, loose)}
        self.assertTrue(strict_ids <= loose_ids <= {e.id for e in self.edges})
        self.assertEqual(loose_ids - strict_ids, {"C1->G1"})

    def test_does_not_mutate(self):
        before = self.graph.edges
        apply_filters(self.edges, NetworkFilters(states=["TX"]))
        self.assertEqual(self.graph.edges, before)
        self.assertEqual(len(self.graph.edges), 3)

    def test_edge_passes(self):
        edge = next(e for e in self.edges if e.target == "P1")
        self.assertTrue(edge_passes(edge, NetworkFilters(states=["TX"])))
        self.assertFalse(edge_passes(edge, NetworkFilters(relationship_types=["PRIME"])))

    def test_default_filters(self):
        f = default_network_filters(AS_OF)
        self.assertEqual(f.time_end, AS_OF)
        self.assertEqual(f.time_start, AS_OF - timedelta(days=config.DEFAULT_FILTER_LOOKBACK_DAYS))
        self.assertEqual(f.relationship_types, ())
        self.assertTrue(f.active_only)
        self.assertEqual(len(apply_filters(self.edges, f)), 3)

    def test_filters_are_hashable_values(self):
        a = NetworkFilters(states=["TX"])
        b = NetworkFilters(states=("TX",))
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))

    def test_to_dict_is_strict_json(self):
        data = NetworkFilters(states=["TX"]).to_dict()
        self.assertIsNone(data["max_value"])
        self.assertEqual(data["min_value"], 0.0)
        self.assertEqual(json.loads(json.dumps(data, allow_nan=False))["states"], ["TX"])
        self.assertEqual(NetworkFilters(max_value=5.0).to_dict()["max_value"], 5.0)

    def test_cached(self):
        f = NetworkFilters(states=["VA"])
        first = apply_filters_cached(self.edges, f)
        self.assertIs(apply_filters_cached(self.edges, NetworkFilters(states=["VA"])), first)
        self.assertEqual(targets(first), {"G1"})


class TestClustering(unittest.TestCase):

    def test_fan_out(self):
        events = [
            make_event(EVENT_ID="1", RELATED_ENTITY_UEI="P1", PERFORMANCE_STATE="VA", PERFORMANCE_CITY="Arlington"),
            make_event(EVENT_ID="2", RELATED_ENTITY_UEI="P1", PERFORMANCE_STATE="TX", PERFORMANCE_CITY="Austin",
                       AWARD_KEY="AW2", AWARD_TOTAL_VALUE=1_000_000),
        ]
        graph = build_graph(events, "C1", as_of=AS_OF)
        edge = graph.edges[0]
        clusters = build_geographic_clusters(graph.edges)

        self.assertEqual(len(clusters), 4)
        self.assertEqual(
            {(c.state, c.city) for c in clusters},
            {("VA", "Arlington"), ("VA", "Austin"), ("TX", "Arlington"), ("TX", "Austin")},
        )
        for c in clusters:
            self.assertEqual(c.total_value, edge.metrics.total_value)
            self.assertEqual(c.relationships, (edge,))
            self.assertEqual(c.node_count, 2)

    def test_sorted_and_accumulated(self):
        graph = sample_graph()
        extra = build_graph([
            make_event(EVENT_ID="1"),
            make_event(EVENT_ID="2", RELATED_ENTITY_UEI="G2", AWARD_KEY="AW5", AWARD_TOTAL_VALUE=1_000_000),
        ], "C1", as_of=AS_OF)

        clusters = build_geographic_clusters(graph.edges)
        self.assertEqual([c.state for c in clusters], ["VA", "TX", "MD"])
        self.assertEqual([c.total_value for c in clusters], [10_000_000, 2_000_000, 500_000])

        shared = build_geographic_clusters(extra.edges)
        self.assertEqual(len(shared), 1)
        self.assertEqual(shared[0].total_value, 11_000_000)
        self.assertEqual(shared[0].node_count, 3)

    def test_filters_applied_first(self):
        clusters = build_geographic_clusters(sample_graph().edges, NetworkFilters(states=["TX"]))
        self.assertEqual([(c.state, c.city) for c in clusters], [("TX", "Austin")])

    def test_edges_missing_state_or_city_form_no_cluster(self):
        graph = build_graph([
            make_event(EVENT_ID="1", PERFORMANCE_CITY=""),
            make_event(EVENT_ID="2", RELATED_ENTITY_UEI="X", PERFORMANCE_STATE="", PERFORMANCE_CITY="Nowhere"),
        ], "C1", as_of=AS_OF)
        clusters = build_geographic_clusters(graph.edges)
        self.assertEqual(clusters, [])

    def test_empty(self):
        self.assertEqual(build_geographic_clusters(()), [])

    def test_coordinates(self):
        clusters = {c.state: c for c in build_geographic_clusters(sample_graph().edges)}
        self.assertEqual(clusters["TX"].coordinates, config.DEFAULT_STATE_COORDINATES["TX"])
        self.assertEqual(clusters["VA"].coordinates, config.US_CENTER_COORDINATES)

        lookup = CoordinateLookup(
            states={"va": (-78.6, 37.4)},
            cities={("TX", "austin"): (-97.7431, 30.2672)},
            default=(0.0, 0.0),
        )
        custom = {c.state: c for c in build_geographic_clusters(sample_graph().edges, coordinates=lookup)}
        self.assertEqual(custom["VA"].coordinates, (-78.6, 37.4))
        self.assertEqual(custom["TX"].coordinates, (-97.7431, 30.2672))
        self.assertEqual(custom["MD"].coordinates, (0.0, 0.0))

    def test_cached(self):
        edges = sample_graph().edges
        first = build_geographic_clusters_cached(edges, NetworkFilters())
        self.assertIs(build_geographic_clusters_cached(edges, NetworkFilters()), first)
        self.assertEqual(len(first), 3)


if __name__ == "__main__":
    unittest.main()

"""
Tests for network_export: DataFrames, networkx graph and bundle files.
"""

import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from award_network.clustering import build_geographic_clusters
from award_network.graph_builder import build_graph
from award_network.network_export import (
    CLUSTER_COLUMNS,
    EDGE_COLUMNS,
    NODE_COLUMNS,
    build_clusters_df,
    build_edges_df,
    build_nodes_df,
    read_events_csv,
    to_networkx,
    write_network_bundle,
)
from award_network.test_graph_builder import AS_OF, two_event_portfolio


class TestDataFrames(unittest.TestCase):

    def setUp(self):
        self.graph = build_graph(two_event_portfolio(), "C1", as_of=AS_OF)

    def test_nodes_df(self):
        df = build_nodes_df(self.graph)
        self.assertEqual(list(df.columns), NODE_COLUMNS)
        self.assertEqual(len(df), 3)
        main = df[df["is_main_contractor"]]
        self.assertEqual(main["node_id"].tolist(), ["C1"])

    def test_edges_df(self):
        df = build_edges_df(self.graph)
        self.assertEqual(list(df.columns), EDGE_COLUMNS)
        self.assertEqual(sorted(df["edge_id"]), ["C1->G1", "C1->P1"])
        self.assertEqual(df.set_index("to_id").loc["P1", "performance_states"], "TX")

    def test_clusters_df(self):
        df = build_clusters_df(build_geographic_clusters(self.graph.edges))
        self.assertEqual(list(df.columns), CLUSTER_COLUMNS)
        self.assertEqual(df["state"].tolist(), ["VA", "TX"])

    def test_empty(self):
        empty = build_graph([], "C1", as_of=AS_OF)
        self.assertEqual(list(build_nodes_df(empty).columns), NODE_COLUMNS)
        self.assertTrue(build_edges_df(empty).empty)
        self.assertTrue(build_clusters_df([]).empty)


class TestNetworkx(unittest.TestCase):

    def test_to_networkx(self):
        G = to_networkx(build_graph(two_event_portfolio(), "C1", as_of=AS_OF))
        self.assertTrue(G.is_directed())
        self.assertEqual(G.number_of_nodes(), 3)
        self.assertEqual(G.number_of_edges(), 2)
        self.assertEqual(G.nodes["G1"]["role"], "agency")
        self.assertEqual(G.edges["C1", "P1"]["relationship_type"], "SUBAWARD")
        self.assertEqual(G.out_degree("C1"), 2)


class TestFiles(unittest.TestCase):

    def test_read_events_and_write_bundle(self):
        with tempfile.TemporaryDirectory() as tmp:
            tmp = Path(tmp)
            csv_path = tmp / "events.csv"
            pd.DataFrame(two_event_portfolio()).to_csv(csv_path, index=False)

            events = read_events_csv(csv_path)
            self.assertEqual(len(events), 2)
            self.assertEqual(events[0]["AWARD_TOTAL_VALUE"], 10_000_000)

            graph = build_graph(events, "C1", as_of=AS_OF)
            self.assertEqual(graph, build_graph(two_event_portfolio(), "C1", as_of=AS_OF))

            paths = write_network_bundle(graph, tmp / "out", clusters=build_geographic_clusters(graph.edges))
            self.assertEqual(set(paths), {"nodes", "edges", "clusters", "summary"})
            for path in paths.values():
                self.assertTrue(path.exists())

            summary = json.loads(paths["summary"].read_text(encoding="utf-8"))
            self.assertEqual(summary["total_relationships"], 2)
            self.assertEqual(summary["main_contractor"], "C1")
            self.assertEqual(len(pd.read_csv(paths["edges"])), 2)


if __name__ == "__main__":
    unittest.main()

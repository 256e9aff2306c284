"""
Tests for exporting and importing store snapshots.
"""
import copy
import json
import unittest

import numpy as np
import pytest

from clustervec import ClusteredVectorStore, SnapshotError, register_similarity
from clustervec.similarity import SimilarityRegistry
from clustervec.store.snapshot import SNAPSHOT_VERSION, dumps, loads


def dot_similarity(a, b):
    return float(np.dot(a, b))


def build_store():
    store = ClusteredVectorStore({"cluster_threshold": 0.9, "max_clusters": 10})
    store.insert([1.0, 0.0, 0.0], metadata={"name": "x", "tags": ["a", "b"]})
    store.insert([0.98, 0.05, 0.0], metadata={"name": "x2"})
    store.insert([0.0, 1.0, 0.0])
    store.insert([0.0, 0.0, 1.0], metadata=7)
    return store


class TestSnapshotRoundTrip(unittest.TestCase):
    """Round-trip behaviour of export and import."""

    def setUp(self):
        self.store = build_store()

    def assertSameState(self, original, restored):
        self.assertEqual(restored.get_all_vectors(), original.get_all_vectors())
        self.assertEqual(
            [summary.to_dict() for summary in restored.get_clusters()],
            [summary.to_dict() for summary in original.get_clusters()],
        )
        self.assertEqual(restored.get_stats(), original.get_stats())

    def test_export_format(self):
        data = self.store.export()

        self.assertEqual(data["version"], SNAPSHOT_VERSION)
        self.assertEqual(data["dimensions"], 3)
        self.assertEqual(data["options"]["similarity"], "cosine")
        self.assertEqual(data["options"]["max_clusters"], 10)
        self.assertEqual(len(data["clusters"]), 3)
        first = data["clusters"][0]
        self.assertEqual(set(first), {"id", "center", "radius", "members"})
        self.assertEqual(len(first["members"]), 2)
        self.assertEqual(first["members"][0]["metadata"], {"name": "x", "tags": ["a", "b"]})
        self.assertEqual(len(data["vector_to_cluster"]), 4)

    def test_import_reproduces_state(self):
        restored = ClusteredVectorStore.import_snapshot(self.store.export())
        self.assertSameState(self.store, restored)
        self.assertEqual(restored.options.cluster_threshold, 0.9)
        self.assertEqual(restored.dimensions, 3)
        restored.verify_consistency()

    def test_centers_restored_verbatim(self):
        data = self.store.export()
        data["clusters"][0]["center"] = [0.5, 0.5, 0.0]
        restored = ClusteredVectorStore.import_snapshot(data)
        self.assertEqual(restored.get_clusters()[0].center, [0.5, 0.5, 0.0])

    def test_json_round_trip(self):
        text = self.store.export_json(pretty=True)
        self.assertIsInstance(json.loads(text), dict)
        restored = ClusteredVectorStore.import_json(text)
        self.assertSameState(self.store, restored)

    def test_export_is_detached(self):
        data = self.store.export()
        data["clusters"][0]["members"][0]["metadata"]["tags"].append("c")
        entry = self.store.get_cluster_members(self.store.get_clusters()[0].id)[0]
        self.assertEqual(entry.metadata["tags"], ["a", "b"])

    def test_restored_store_is_usable(self):
        restored = ClusteredVectorStore.import_snapshot(self.store.export())
        vector_id = restored.insert([0.99, 0.02, 0.0])
        self.assertEqual(restored.get_stats()["num_vectors"], 5)
        results = restored.search([1.0, 0.0, 0.0], limit=1, search_all_clusters=True)
        self.assertEqual(results[0].entry.vector.tolist(), [1.0, 0.0, 0.0])
        self.assertIn(vector_id, restored)
        # The original is untouched
        self.assertEqual(self.store.get_stats()["num_vectors"], 4)

    def test_empty_store_round_trip(self):
        empty = ClusteredVectorStore()
        data = empty.export()
        self.assertIsNone(data["dimensions"])
        restored = ClusteredVectorStore.import_snapshot(data)
        self.assertEqual(restored.get_stats(), empty.get_stats())

    def test_interleaved_inserts_keep_insertion_order(self):
        store = ClusteredVectorStore({"cluster_threshold": 0.9})
        ids = [
            store.insert([1.0, 0.0, 0.0]),
            store.insert([0.0, 1.0, 0.0]),
            store.insert([0.99, 0.01, 0.0]),
            store.insert([0.0, 0.98, 0.05]),
        ]
        self.assertEqual(len(store.get_clusters()), 2)

        restored = ClusteredVectorStore.import_snapshot(store.export())

        self.assertEqual([entry.id for entry in restored.get_all_vectors()], ids)
        self.assertSameState(store, restored)

    def test_insertion_order_survives_merge(self):
        store = ClusteredVectorStore({"cluster_threshold": 0.9})
        store.insert([1.0, 0.0, 0.0])
        store.insert([0.0, 1.0, 0.0])
        store.insert([0.99, 0.01, 0.0])
        first, second = [cluster.id for cluster in store.get_clusters()]
        store.merge_clusters(second, first)

        restored = ClusteredVectorStore.import_json(store.export_json())
        self.assertSameState(store, restored)

    def test_search_defaults_round_trip(self):
        store = ClusteredVectorStore(
            {"cluster_threshold": 0.9, "search": {"limit": 1, "min_similarity": 0.2}}
        )
        store.insert([1.0, 0.0, 0.0])
        store.insert([0.9, 0.1, 0.0])

        data = store.export()
        self.assertEqual(
            data["search"], {"limit": 1, "min_similarity": 0.2, "search_all_clusters": False}
        )

        restored = ClusteredVectorStore.import_snapshot(data)
        self.assertEqual(restored.search_defaults, store.search_defaults)
        self.assertEqual(len(restored.search([1.0, 0.0, 0.0])), 1)

    def test_missing_search_defaults_use_built_ins(self):
        data = self.store.export()
        del data["search"]
        restored = ClusteredVectorStore.import_snapshot(data)
        self.assertEqual(restored.search_defaults.limit, 10)


class TestCustomMetricSnapshots:
    """Snapshots record metrics by name."""

    def teardown_method(self):
        SimilarityRegistry.unregister("dot")

    def test_registered_metric_restored_by_name(self):
        register_similarity("dot", dot_similarity)
        store = ClusteredVectorStore({"similarity": "dot", "cluster_threshold": 0.5})
        store.insert([1.0, 0.0])
        store.insert([0.0, 1.0])

        data = store.export()
        assert data["options"]["similarity"] == "dot"

        restored = ClusteredVectorStore.import_snapshot(data)
        assert restored.options.similarity.fn is dot_similarity

    def test_unregistered_metric_needs_override(self):
        store = ClusteredVectorStore({"similarity": dot_similarity, "cluster_threshold": 0.5})
        store.insert([1.0, 0.0])
        data = store.export()

        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(data)

        restored = ClusteredVectorStore.import_snapshot(data, similarity=dot_similarity)
        assert restored.options.similarity.fn is dot_similarity

    def test_override_by_name(self):
        store = ClusteredVectorStore()
        store.insert([1.0, 0.0])
        restored = ClusteredVectorStore.import_snapshot(store.export(), similarity="euclidean")
        assert restored.options.similarity.name == "euclidean"


class TestMalformedSnapshots:
    """Import must reject inconsistent snapshots."""

    def setup_method(self):
        self.data = build_store().export()

    def test_not_a_dict(self):
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot([1, 2, 3])

    def test_unsupported_version(self):
        self.data["version"] = 99
        with pytest.raises(SnapshotError, match="version"):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_empty_cluster(self):
        self.data["clusters"][0]["members"] = []
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_duplicate_entry(self):
        duplicate = copy.deepcopy(self.data["clusters"][0]["members"][0])
        self.data["clusters"][1]["members"].append(duplicate)
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_vector_length_mismatch(self):
        self.data["clusters"][1]["members"][0]["vector"] = [1.0, 0.0]
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_center_length_mismatch(self):
        self.data["clusters"][0]["center"] = [1.0]
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_mapping_disagreement(self):
        entry_id = self.data["clusters"][0]["members"][0]["id"]
        self.data["vector_to_cluster"][entry_id] = self.data["clusters"][1]["id"]
        with pytest.raises(SnapshotError, match="mapping"):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_mapping_missing_entry(self):
        entry_id = self.data["clusters"][0]["members"][0]["id"]
        del self.data["vector_to_cluster"][entry_id]
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_mapping_not_a_dict(self):
        self.data["vector_to_cluster"] = []
        with pytest.raises(SnapshotError, match="mapping"):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_invalid_search_defaults(self):
        self.data["search"] = {"limit": -1}
        with pytest.raises(SnapshotError, match="search"):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_invalid_vector(self):
        self.data["clusters"][0]["members"][0]["vector"] = [1.0, "x", 0.0]
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_missing_dimensions(self):
        self.data["dimensions"] = None
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_invalid_options(self):
        self.data["options"]["max_clusters"] = 0
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_negative_radius(self):
        self.data["clusters"][0]["radius"] = -1.0
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_snapshot(self.data)

    def test_invalid_json(self):
        with pytest.raises(SnapshotError):
            ClusteredVectorStore.import_json("{not json")


class TestJsonHelpers:
    """Test the JSON encoding helpers."""

    def test_numpy_metadata_is_encoded(self):
        text = dumps({"metadata": {"score": np.float32(0.5), "ids": np.array([1, 2])}})
        assert loads(text) == {"metadata": {"score": 0.5, "ids": [1, 2]}}

    def test_pretty(self):
        assert "\n" in dumps({"a": 1}, pretty=True)
        assert "\n" not in dumps({"a": 1})

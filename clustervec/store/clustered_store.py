"""
Clustered vector store.

ClusteredVectorStore is the public entry point: it wires a VectorIndex and a
ClusterManager together behind the VectorStoreInterface, applies search
defaults, hands out copies instead of live objects, and serialises every call
on one re-entrant lock.
"""

import numbers
import threading
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from clustervec.config.config_manager import ConfigManager, SearchConfig, get_config
from clustervec.interfaces import SnapshotError, VectorStoreInterface
from clustervec.monitoring.structured_logger import OperationLogger, get_logger
from clustervec.store import snapshot
from clustervec.store.cluster_manager import ClusterManager
from clustervec.store.models import Cluster, ClusterSummary, SearchResult, VectorEntry
from clustervec.store.options import StoreOptions

_SEARCH_ALIASES = {
    "minSimilarity": "min_similarity",
    "searchAllClusters": "search_all_clusters",
}


def _search_config(data: Optional[Dict[str, Any]]) -> SearchConfig:
    kwargs: Dict[str, Any] = {}
    for key, value in (data or {}).items():
        name = _SEARCH_ALIASES.get(key, key)
        if name in SearchConfig.__dataclass_fields__ and value is not None:
            kwargs[name] = value
    search = SearchConfig(**kwargs)
    _check_limit(search.limit)
    _check_min_similarity(search.min_similarity)
    search.search_all_clusters = bool(search.search_all_clusters)
    return search


def _check_limit(limit: Any) -> None:
    if isinstance(limit, bool) or not isinstance(limit, numbers.Integral) or limit < 0:
        raise ValueError(f"limit must be a non-negative integer, got {limit!r}")


def _check_min_similarity(min_similarity: Any) -> None:
    if isinstance(min_similarity, bool) or not isinstance(min_similarity, numbers.Real):
        raise ValueError(f"min_similarity must be a number, got {min_similarity!r}")


class ClusteredVectorStore(VectorStoreInterface):
    """
    In-memory vector store that groups vectors into similarity clusters.

    Searches are pruned by cluster center similarity unless exhaustive search
    is requested. Thread-safe: every public method holds the store lock.
    """

    def __init__(self, config: Optional[Union[Dict[str, Any], StoreOptions]] = None):
        """
        Initialize the store.

        Args:
            config: A StoreOptions value, or a dictionary with keys:
                - similarity: Metric name, SimilarityMetric or callable (default: 'cosine')
                - cluster_threshold: Minimum center similarity to join a cluster (default: 0.85)
                - dynamic_clustering: Create clusters for outliers (default: True)
                - recalculate_centers: Keep centers at the member mean (default: True)
                - max_clusters: Cluster cap (default: 100)
                - search: Search defaults (limit, min_similarity, search_all_clusters)

        Raises:
            ValueError: If an option value is invalid
        """
        self.logger = get_logger(__name__, component="clustered_store")
        self._lock = threading.RLock()

        if isinstance(config, StoreOptions):
            options = config
            self._search_defaults = SearchConfig()
        else:
            config = dict(config or {})
            self._search_defaults = _search_config(config.pop("search", None))
            options = StoreOptions.from_dict(config)

        self._manager = ClusterManager(options)
        self.logger.debug(
            "Clustered vector store created",
            similarity=options.similarity.name,
            cluster_threshold=options.cluster_threshold,
            max_clusters=options.max_clusters,
        )

    @classmethod
    def from_config(cls, manager: Optional[ConfigManager] = None) -> "ClusteredVectorStore":
        """Build a store from the store and search sections of the configuration."""
        return cls((manager or get_config()).get_store_config())

    @classmethod
    def _from_manager(
        cls, manager: ClusterManager, search: Optional[SearchConfig] = None
    ) -> "ClusteredVectorStore":
        store = cls(manager.options)
        store._manager = manager
        if search is not None:
            store._search_defaults = search
        return store

    @property
    def dimensions(self) -> Optional[int]:
        with self._lock:
            return self._manager.dimensions

    @property
    def options(self) -> StoreOptions:
        return self._manager.options

    @property
    def search_defaults(self) -> SearchConfig:
        return self._search_defaults

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, vector: Sequence[float], metadata: Any = None) -> str:
        with self._lock:
            return self._manager.insert(vector, metadata)

    def add_cluster(self, vector: Sequence[float], metadata: Any = None) -> str:
        """
        Create a new cluster seeded by the given vector.

        Returns:
            ID of the new cluster
        """
        with self._lock:
            return self._manager.add_cluster(vector, metadata)

    def remove_vector(self, vector_id: str) -> bool:
        with self._lock:
            return self._manager.remove_vector(vector_id)

    def update_metadata(self, vector_id: str, metadata: Any) -> bool:
        with self._lock:
            return self._manager.index.update_metadata(vector_id, metadata)

    def merge_clusters(self, cluster_id_1: str, cluster_id_2: str) -> str:
        """
        Merge the second cluster into the first.

        Returns:
            ID of the surviving cluster
        """
        with self._lock:
            with OperationLogger(
                self.logger, "merge_clusters", cluster_id_1=cluster_id_1, cluster_id_2=cluster_id_2
            ):
                return self._manager.merge_clusters(cluster_id_1, cluster_id_2)

    def split_cluster(self, cluster_id: str) -> Tuple[str, str]:
        """
        Split a cluster around its two most distant members.

        Returns:
            IDs of the two new clusters
        """
        with self._lock:
            with OperationLogger(self.logger, "split_cluster", cluster_id=cluster_id):
                return self._manager.split_cluster(cluster_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(
        self,
        query: Sequence[float],
        limit: Optional[int] = None,
        min_similarity: Optional[float] = None,
        search_all_clusters: Optional[bool] = None,
    ) -> List[SearchResult]:
        """
        Find the vectors most similar to the query.

        Parameters left as None take the store's search defaults.

        Returns:
            Search results ordered by similarity, highest first
        """
        defaults = self._search_defaults
        if limit is None:
            limit = defaults.limit
        if min_similarity is None:
            min_similarity = defaults.min_similarity
        if search_all_clusters is None:
            search_all_clusters = defaults.search_all_clusters
        _check_min_similarity(min_similarity)

        with self._lock:
            return self._manager.search(
                query,
                limit=limit,
                min_similarity=float(min_similarity),
                search_all_clusters=bool(search_all_clusters),
            )

    def get_vector_by_id(self, vector_id: str) -> Optional[VectorEntry]:
        with self._lock:
            entry = self._manager.index.get(vector_id)
            return entry.copy() if entry is not None else None

    def get_all_vectors(self) -> List[VectorEntry]:
        with self._lock:
            return [entry.copy() for entry in self._manager.index.all()]

    def get_clusters(self, include_radius: bool = True) -> List[ClusterSummary]:
        """Summaries of every cluster, in storage order."""
        with self._lock:
            return [cluster.to_summary(include_radius) for cluster in self._manager.clusters]

    def get_cluster_by_id(self, cluster_id: str) -> Optional[Cluster]:
        with self._lock:
            cluster = self._manager.get_cluster(cluster_id)
            return cluster.copy() if cluster is not None else None

    def get_cluster_members(self, cluster_id: str) -> Optional[List[VectorEntry]]:
        """Copies of a cluster's member entries, or None if the cluster is unknown."""
        with self._lock:
            if self._manager.get_cluster(cluster_id) is None:
                return None
            return [entry.copy() for entry in self._manager.member_entries(cluster_id)]

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            sizes = [cluster.size for cluster in self._manager.clusters]
            if sizes:
                cluster_stats = {
                    "min": min(sizes),
                    "max": max(sizes),
                    "avg": sum(sizes) / len(sizes),
                }
            else:
                cluster_stats = {"min": 0, "max": 0, "avg": 0}

            return {
                "num_vectors": len(self._manager.index),
                "num_clusters": len(sizes),
                "dimensions": self._manager.dimensions,
                "cluster_stats": cluster_stats,
            }

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def export(self) -> Dict[str, Any]:
        """
        Export the full store state.

        Returns:
            JSON-compatible snapshot dictionary
        """
        with self._lock:
            with OperationLogger(self.logger, "export") as operation:
                data = snapshot.export_state(self._manager, search=asdict(self._search_defaults))
                operation.context["num_clusters"] = len(data["clusters"])
                return data

    def export_json(self, pretty: bool = False) -> str:
        return snapshot.dumps(self.export(), pretty=pretty)

    @classmethod
    def import_snapshot(
        cls, data: Dict[str, Any], similarity: Optional[Any] = None
    ) -> "ClusteredVectorStore":
        """
        Create a store from a snapshot produced by export().

        Args:
            data: Snapshot dictionary
            similarity: Similarity override; by default the metric is looked up
                by the name recorded in the snapshot

        Returns:
            A new store with the exported state

        Raises:
            SnapshotError: If the snapshot is malformed
        """
        logger = get_logger(__name__, component="clustered_store")
        with OperationLogger(logger, "import_snapshot"):
            manager = snapshot.import_state(data, similarity=similarity)
            search_data = data.get("search")
            if search_data is not None and not isinstance(search_data, dict):
                raise SnapshotError("Snapshot search defaults must be a dictionary")
            try:
                search = _search_config(search_data)
            except ValueError as e:
                raise SnapshotError(f"Invalid snapshot search defaults: {e}") from e
        return cls._from_manager(manager, search=search)

    @classmethod
    def import_json(cls, text: str, similarity: Optional[Any] = None) -> "ClusteredVectorStore":
        return cls.import_snapshot(snapshot.loads(text), similarity=similarity)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def verify_consistency(self) -> None:
        """Raise VectorStoreOperationError if the structural invariants do not hold."""
        with self._lock:
            self._manager.verify_consistency()

    def __len__(self) -> int:
        with self._lock:
            return len(self._manager.index)

    def __contains__(self, vector_id: object) -> bool:
        with self._lock:
            return vector_id in self._manager.index

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}(dim={self.dimensions}, "
            f"vectors={len(self)}, similarity={self.options.similarity.name})"
        )

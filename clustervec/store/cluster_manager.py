"""
Cluster management for the clustered vector store.

The ClusterManager owns the clusters and the entry-to-cluster mapping, routes
each inserted vector to a cluster, keeps cluster centers and radii current, and
implements split, merge and the two search strategies. Vector data lives in the
VectorIndex; clusters only hold entry identifiers.
"""

import logging
import numbers
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from clustervec.similarity import SimilarityMetric
from clustervec.interfaces import (
    VectorStoreDimensionError,
    VectorStoreOperationError,
    MaxClustersExceededError,
    InvalidClusterError,
    InsufficientMembersError,
    as_vector,
)
from clustervec.store.models import Cluster, SearchResult, VectorEntry
from clustervec.store.options import StoreOptions
from clustervec.store.vector_index import VectorIndex


def _new_id() -> str:
    return str(uuid.uuid4())


class ClusterManager:
    """
    Similarity clustering over a VectorIndex.

    Not thread-safe: every method assumes exclusive access. The store facade
    serialises calls with a single lock.
    """

    def __init__(self, options: Optional[StoreOptions] = None, index: Optional[VectorIndex] = None):
        """
        Initialize the cluster manager.

        Args:
            options: Clustering options (defaults if None)
            index: Vector index to manage (a fresh one if None)
        """
        self.logger = logging.getLogger(__name__)
        self.options = options or StoreOptions()
        self.index = index if index is not None else VectorIndex()

        self.dimensions: Optional[int] = None
        self._clusters: Dict[str, Cluster] = {}
        self._vector_to_cluster: Dict[str, str] = {}

    @property
    def similarity(self) -> SimilarityMetric:
        return self.options.similarity

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_vector(self, vector: Any) -> np.ndarray:
        """Validate content and length without touching any state."""
        arr = as_vector(vector)
        if self.dimensions is not None and len(arr) != self.dimensions:
            raise VectorStoreDimensionError(self.dimensions, len(arr))
        return arr

    def _adopt_dimensions(self, arr: np.ndarray) -> None:
        if self.dimensions is None:
            self.dimensions = len(arr)
            self.logger.debug(f"Store dimensions set to {self.dimensions}")

    def _check_capacity(self) -> None:
        if len(self._clusters) >= self.options.max_clusters:
            raise MaxClustersExceededError(self.options.max_clusters)

    def _require_cluster(self, cluster_id: str) -> Cluster:
        cluster = self._clusters.get(cluster_id)
        if cluster is None:
            raise InvalidClusterError(f"Invalid cluster ID: {cluster_id}")
        return cluster

    # ------------------------------------------------------------------
    # Center and radius maintenance
    # ------------------------------------------------------------------

    def compute_center(self, cluster: Cluster) -> np.ndarray:
        """
        Component-wise mean of the cluster's member vectors.

        A single-member cluster's center is an exact copy of that member.
        """
        vectors = self.index.vectors_for(cluster.member_ids)
        if len(vectors) == 1:
            return vectors[0].copy()
        return vectors.mean(axis=0)

    def compute_radius(self, cluster: Cluster) -> float:
        """
        Maximum distance from the center to any member, under the metric family.

        A single-member cluster has radius 0.
        """
        vectors = self.index.vectors_for(cluster.member_ids)
        if len(vectors) == 1:
            return 0.0
        return max(self.similarity.distance(vector, cluster.center) for vector in vectors)

    def _refresh(self, cluster: Cluster) -> None:
        if self.options.recalculate_centers:
            cluster.center = self.compute_center(cluster)
        cluster.radius = self.compute_radius(cluster)

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def _create_cluster(self, entry: VectorEntry) -> Cluster:
        cluster = Cluster(id=_new_id(), center=entry.vector.copy(), member_ids=[entry.id])
        self.index.put(entry)
        self._clusters[cluster.id] = cluster
        self._vector_to_cluster[entry.id] = cluster.id
        self.logger.debug(f"Created cluster {cluster.id} seeded by vector {entry.id}")
        return cluster

    def add_cluster(self, vector: Sequence[float], metadata: Any = None) -> str:
        """
        Create a cluster centered on the given vector, with it as the sole member.

        Returns:
            ID of the new cluster

        Raises:
            InvalidVectorError: If the vector is malformed
            VectorStoreDimensionError: If the vector length disagrees with the store
            MaxClustersExceededError: If the store already holds max_clusters clusters
        """
        arr = self._validate_vector(vector)
        self._check_capacity()
        self._adopt_dimensions(arr)
        entry = VectorEntry(id=_new_id(), vector=arr, metadata=metadata)
        return self._create_cluster(entry).id

    def find_best_cluster(self, vector: np.ndarray) -> Tuple[Optional[Cluster], float]:
        """
        Score the vector against every cluster center.

        Returns:
            The most similar cluster (first one wins ties) and its similarity,
            or (None, -inf) when there are no clusters
        """
        best_cluster: Optional[Cluster] = None
        best_similarity = float("-inf")
        for cluster in self._clusters.values():
            similarity = self.similarity(vector, cluster.center)
            if best_cluster is None or similarity > best_similarity:
                best_cluster = cluster
                best_similarity = similarity
        return best_cluster, best_similarity

    def insert(self, vector: Sequence[float], metadata: Any = None) -> str:
        """
        Insert a vector, routing it to the most similar cluster.

        Joins the best cluster when its center similarity reaches the threshold.
        Below the threshold a new cluster is created when dynamic clustering is
        on, otherwise the vector is force-joined to the best cluster.

        Returns:
            ID of the new vector entry

        Raises:
            InvalidVectorError: If the vector is malformed
            VectorStoreDimensionError: If the vector length disagrees with the store
            MaxClustersExceededError: If a new cluster is needed but the cap is reached
        """
        arr = self._validate_vector(vector)

        if not self._clusters:
            self._adopt_dimensions(arr)
            entry = VectorEntry(id=_new_id(), vector=arr, metadata=metadata)
            self._create_cluster(entry)
            return entry.id

        target, best_similarity = self.find_best_cluster(arr)

        if best_similarity < self.options.cluster_threshold:
            if self.options.dynamic_clustering:
                self._check_capacity()
                entry = VectorEntry(id=_new_id(), vector=arr, metadata=metadata)
                self._create_cluster(entry)
                return entry.id
            self.logger.debug(
                f"Similarity {best_similarity:.4f} below threshold "
                f"{self.options.cluster_threshold}; joining cluster {target.id} anyway"
            )

        entry = VectorEntry(id=_new_id(), vector=arr, metadata=metadata)
        self.index.put(entry)
        target.member_ids.append(entry.id)
        self._vector_to_cluster[entry.id] = target.id
        self._refresh(target)
        return entry.id

    # ------------------------------------------------------------------
    # Removal, merge and split
    # ------------------------------------------------------------------

    def remove_vector(self, vector_id: str) -> bool:
        """
        Remove a vector. Deletes its cluster if it was the last member.

        Returns:
            True if removed, False if the ID is unknown
        """
        if vector_id not in self.index:
            return False

        cluster_id = self._vector_to_cluster.get(vector_id)
        cluster = self._clusters.get(cluster_id) if cluster_id else None
        if cluster is None:
            raise VectorStoreOperationError(f"Vector {vector_id} is not assigned to any cluster")

        cluster.member_ids.remove(vector_id)
        self.index.remove(vector_id)
        del self._vector_to_cluster[vector_id]

        if cluster.member_ids:
            self._refresh(cluster)
        else:
            del self._clusters[cluster.id]
            self.logger.debug(f"Removed empty cluster {cluster.id}")
        return True

    def merge_clusters(self, cluster_id_1: str, cluster_id_2: str) -> str:
        """
        Move every member of the second cluster into the first and delete the second.

        Returns:
            ID of the merged (first) cluster

        Raises:
            InvalidClusterError: If either ID is unknown or both IDs are the same
        """
        if cluster_id_1 == cluster_id_2:
            raise InvalidClusterError(f"Cannot merge cluster {cluster_id_1} with itself")
        target = self._require_cluster(cluster_id_1)
        source = self._require_cluster(cluster_id_2)

        target.member_ids.extend(source.member_ids)
        for member_id in source.member_ids:
            self._vector_to_cluster[member_id] = target.id
        del self._clusters[source.id]

        self._refresh(target)
        self.logger.info(
            f"Merged cluster {source.id} into {target.id} ({target.size} members)"
        )
        return target.id

    def _farthest_pair(self, vectors: np.ndarray) -> Tuple[int, int]:
        """First pair (i < j) with maximal 1 - similarity, by exhaustive scan."""
        best_pair = (0, 1)
        max_distance = float("-inf")
        n = len(vectors)
        for i in range(n):
            for j in range(i + 1, n):
                distance = 1.0 - self.similarity(vectors[i], vectors[j])
                if distance > max_distance:
                    max_distance = distance
                    best_pair = (i, j)
        return best_pair

    def split_cluster(self, cluster_id: str) -> Tuple[str, str]:
        """
        Split a cluster in two around its two most distant members.

        The two most distant members seed the new clusters; every other member
        joins the seed it is more similar to, the first seed winning ties. The
        original cluster is replaced by the two new ones, appended at the end
        of the cluster order.

        Returns:
            IDs of the new clusters, first seed's cluster first

        Raises:
            InvalidClusterError: If the ID is unknown
            InsufficientMembersError: If the cluster has fewer than two members
        """
        cluster = self._require_cluster(cluster_id)
        if cluster.size < 2:
            raise InsufficientMembersError(cluster.id, cluster.size)

        member_ids = list(cluster.member_ids)
        vectors = self.index.vectors_for(member_ids)
        seed_1, seed_2 = self._farthest_pair(vectors)

        first = Cluster(
            id=_new_id(), center=vectors[seed_1].copy(), member_ids=[member_ids[seed_1]]
        )
        second = Cluster(
            id=_new_id(), center=vectors[seed_2].copy(), member_ids=[member_ids[seed_2]]
        )

        for i, member_id in enumerate(member_ids):
            if i in (seed_1, seed_2):
                continue
            similarity_1 = self.similarity(vectors[i], first.center)
            similarity_2 = self.similarity(vectors[i], second.center)
            if similarity_1 >= similarity_2:
                first.member_ids.append(member_id)
            else:
                second.member_ids.append(member_id)

        self._refresh(first)
        self._refresh(second)

        del self._clusters[cluster.id]
        for new_cluster in (first, second):
            self._clusters[new_cluster.id] = new_cluster
            for member_id in new_cluster.member_ids:
                self._vector_to_cluster[member_id] = new_cluster.id

        self.logger.info(
            f"Split cluster {cluster.id} into {first.id} ({first.size} members) "
            f"and {second.id} ({second.size} members)"
        )
        return first.id, second.id

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _result(self, entry: VectorEntry, similarity: float, cluster_id: str) -> SearchResult:
        return SearchResult(entry=entry.copy(), similarity=similarity, cluster_id=cluster_id)

    def search(
        self,
        query: Sequence[float],
        limit: int = 10,
        min_similarity: float = 0.0,
        search_all_clusters: bool = False,
    ) -> List[SearchResult]:
        """
        Find the stored vectors most similar to the query.

        In the default cluster-pruned mode clusters are visited in order of
        center similarity; clusters whose center falls below min_similarity are
        skipped, and visiting stops once at least ``limit`` results have been
        collected. Results are therefore approximate: a closer vector in a
        cluster that was never visited is missed.

        With search_all_clusters every stored vector is scored.

        Args:
            query: Query vector
            limit: Maximum number of results
            min_similarity: Minimum similarity a result must reach
            search_all_clusters: Score every stored vector instead of pruning

        Returns:
            Results ordered by similarity, highest first

        Raises:
            InvalidVectorError: If the query is malformed
            VectorStoreDimensionError: If the query length disagrees with the store
            ValueError: If limit is negative or not an integer
        """
        if isinstance(limit, bool) or not isinstance(limit, numbers.Integral) or limit < 0:
            raise ValueError(f"limit must be a non-negative integer, got {limit!r}")

        arr = as_vector(query)
        if not self._clusters:
            return []
        if len(arr) != self.dimensions:
            raise VectorStoreDimensionError(self.dimensions, len(arr))

        results: List[SearchResult] = []

        if search_all_clusters:
            for entry in self.index.all():
                similarity = self.similarity(arr, entry.vector)
                if similarity >= min_similarity:
                    results.append(
                        self._result(entry, similarity, self._vector_to_cluster[entry.id])
                    )
        else:
            ranked = sorted(
                (
                    (cluster, self.similarity(arr, cluster.center))
                    for cluster in self._clusters.values()
                ),
                key=lambda pair: pair[1],
                reverse=True,
            )
            for cluster, center_similarity in ranked:
                if center_similarity < min_similarity:
                    continue
                for member_id in cluster.member_ids:
                    entry = self.index.get(member_id)
                    similarity = self.similarity(arr, entry.vector)
                    if similarity >= min_similarity:
                        results.append(self._result(entry, similarity, cluster.id))
                if len(results) >= limit:
                    break

        results.sort(key=lambda result: result.similarity, reverse=True)
        return results[:limit]

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def clusters(self) -> List[Cluster]:
        """Live clusters in storage order. Callers must not mutate them."""
        return list(self._clusters.values())

    def get_cluster(self, cluster_id: str) -> Optional[Cluster]:
        return self._clusters.get(cluster_id)

    def cluster_of(self, vector_id: str) -> Optional[str]:
        return self._vector_to_cluster.get(vector_id)

    @property
    def vector_to_cluster(self) -> Dict[str, str]:
        return dict(self._vector_to_cluster)

    def member_entries(self, cluster_id: str) -> List[VectorEntry]:
        cluster = self._require_cluster(cluster_id)
        return [self.index.get(member_id) for member_id in cluster.member_ids]

    # ------------------------------------------------------------------
    # State restore and consistency
    # ------------------------------------------------------------------

    def restore(
        self,
        dimensions: Optional[int],
        clusters: Iterable[Tuple[Cluster, List[VectorEntry]]],
        order: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Replace all state with the given clusters and their member entries.

        Centers and radii are taken as given, not recomputed. The index is rebuilt
        by walking every cluster's members, then rearranged into ``order`` (the
        original insertion order of the entry IDs) when one is given.

        Raises:
            VectorStoreOperationError: If the restored state violates an invariant
        """
        self.index.clear()
        self._clusters = {}
        self._vector_to_cluster = {}
        self.dimensions = dimensions

        for cluster, entries in clusters:
            if cluster.id in self._clusters:
                raise VectorStoreOperationError(f"Duplicate cluster ID: {cluster.id}")
            cluster.member_ids = [entry.id for entry in entries]
            for entry in entries:
                if dimensions is not None and len(entry.vector) != dimensions:
                    raise VectorStoreDimensionError(dimensions, len(entry.vector))
                self.index.put(entry)
                self._vector_to_cluster[entry.id] = cluster.id
            self._clusters[cluster.id] = cluster

        if order is not None:
            order = list(order)
            self.index.reorder(order)
            self._vector_to_cluster = {
                vector_id: self._vector_to_cluster[vector_id] for vector_id in order
            }

        self.verify_consistency()

    def verify_consistency(self) -> None:
        """
        Check the structural invariants.

        Raises:
            VectorStoreOperationError: On the first violation found
        """
        seen: Dict[str, str] = {}
        for cluster in self._clusters.values():
            if not cluster.member_ids:
                raise VectorStoreOperationError(f"Cluster {cluster.id} has no members")
            if self.dimensions is not None and len(cluster.center) != self.dimensions:
                raise VectorStoreDimensionError(self.dimensions, len(cluster.center))
            for member_id in cluster.member_ids:
                if member_id in seen:
                    raise VectorStoreOperationError(
                        f"Vector {member_id} belongs to clusters {seen[member_id]} and {cluster.id}"
                    )
                if member_id not in self.index:
                    raise VectorStoreOperationError(f"Vector {member_id} is not indexed")
                seen[member_id] = cluster.id

        if seen != self._vector_to_cluster:
            raise VectorStoreOperationError("Vector-to-cluster mapping disagrees with membership")
        if len(seen) != len(self.index):
            raise VectorStoreOperationError("Indexed vectors without a cluster")

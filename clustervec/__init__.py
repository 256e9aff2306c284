"""
clustervec: an in-memory vector store that groups vectors into similarity
clusters for approximate nearest-neighbour search.
"""

from clustervec.interfaces import (
    VectorStoreError,
    VectorStoreOperationError,
    VectorStoreDimensionError,
    InvalidVectorError,
    MaxClustersExceededError,
    InvalidClusterError,
    InsufficientMembersError,
    SnapshotError,
)
from clustervec.similarity import (
    MetricKind,
    SimilarityMetric,
    cosine_similarity,
    euclidean_distance,
    euclidean_similarity,
    register_similarity,
    get_similarity,
    available_similarities,
)
from clustervec.store import ClusteredVectorStore, StoreOptions, SearchResult

__version__ = "0.1.0"

__all__ = [
    "ClusteredVectorStore",
    "StoreOptions",
    "SearchResult",
    "MetricKind",
    "SimilarityMetric",
    "cosine_similarity",
    "euclidean_distance",
    "euclidean_similarity",
    "register_similarity",
    "get_similarity",
    "available_similarities",
    "VectorStoreError",
    "VectorStoreOperationError",
    "VectorStoreDimensionError",
    "InvalidVectorError",
    "MaxClustersExceededError",
    "InvalidClusterError",
    "InsufficientMembersError",
    "SnapshotError",
]

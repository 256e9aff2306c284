"""
Similarity metrics.

Usage:
    from clustervec.similarity import cosine_similarity, resolve_similarity

    cosine_similarity([1, 0], [0.5, 0.5])

    # Register a custom metric so it can be referenced by name and restored from snapshots
    register_similarity("dot", lambda a, b: float(np.dot(a, b)))
"""

from .metrics import (
    MetricKind,
    SimilarityMetric,
    SimilarityRegistry,
    COSINE,
    EUCLIDEAN,
    cosine_similarity,
    euclidean_distance,
    euclidean_similarity,
    register_similarity,
    get_similarity,
    available_similarities,
    resolve_similarity,
)

__all__ = [
    "MetricKind",
    "SimilarityMetric",
    "SimilarityRegistry",
    "COSINE",
    "EUCLIDEAN",
    "cosine_similarity",
    "euclidean_distance",
    "euclidean_similarity",
    "register_similarity",
    "get_similarity",
    "available_similarities",
    "resolve_similarity",
]

"""
Construction options for the clustered vector store.
"""

import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from clustervec.similarity import COSINE, SimilarityMetric, resolve_similarity

# camelCase names accepted for compatibility with exported option blocks
_OPTION_ALIASES = {
    "similarityFn": "similarity",
    "similarity_fn": "similarity",
    "clusterThreshold": "cluster_threshold",
    "dynamicClustering": "dynamic_clustering",
    "recalculateCenters": "recalculate_centers",
    "maxClusters": "max_clusters",
}


@dataclass
class StoreOptions:
    """Clustering behaviour of a store."""

    similarity: SimilarityMetric = field(default=COSINE)
    cluster_threshold: float = 0.85
    dynamic_clustering: bool = True
    recalculate_centers: bool = True
    max_clusters: int = 100

    def __post_init__(self):
        self.similarity = resolve_similarity(self.similarity)

        threshold = self.cluster_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real):
            raise ValueError(f"cluster_threshold must be a number, got {threshold!r}")
        if math.isnan(threshold):
            raise ValueError("cluster_threshold must not be NaN")
        self.cluster_threshold = float(threshold)

        max_clusters = self.max_clusters
        if isinstance(max_clusters, bool) or not isinstance(max_clusters, numbers.Integral):
            raise ValueError(f"max_clusters must be an integer, got {max_clusters!r}")
        if max_clusters < 1:
            raise ValueError(f"max_clusters must be at least 1, got {max_clusters}")
        self.max_clusters = int(max_clusters)

        self.dynamic_clustering = bool(self.dynamic_clustering)
        self.recalculate_centers = bool(self.recalculate_centers)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None) -> "StoreOptions":
        """
        Build options from a dictionary, ignoring keys that are not options.

        Args:
            data: Option values keyed by snake_case or camelCase name

        Returns:
            A validated StoreOptions instance
        """
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = _OPTION_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__ and value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, with the similarity recorded by name."""
        return {
            "similarity": self.similarity.name,
            "cluster_threshold": self.cluster_threshold,
            "dynamic_clustering": self.dynamic_clustering,
            "recalculate_centers": self.recalculate_centers,
            "max_clusters": self.max_clusters,
        }

"""
Similarity metrics for the clustered vector store.

Every metric scores two equal-length vectors and returns a real number where
larger means more similar. Metrics carry an explicit MetricKind so that cluster
radius computation can tell cosine-family metrics (radius measured as
``1 - similarity``) apart from everything else (radius measured as raw
Euclidean distance).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np

from clustervec.interfaces import VectorStoreDimensionError

logger = logging.getLogger(__name__)

SimilarityFn = Callable[[Sequence[float], Sequence[float]], float]


class MetricKind(Enum):
    """Metric families, used to pick the radius distance."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    CUSTOM = "custom"


def _pair(a: Sequence[float], b: Sequence[float]):
    a_arr = np.asarray(a, dtype=np.float64)
    b_arr = np.asarray(b, dtype=np.float64)
    if a_arr.ndim != 1 or b_arr.ndim != 1 or a_arr.shape != b_arr.shape:
        raise VectorStoreDimensionError(a_arr.size, b_arr.size)
    return a_arr, b_arr


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two vectors.

    Returns 0.0 when either vector has zero magnitude.
    """
    a_arr, b_arr = _pair(a, b)
    norm_a = float(np.linalg.norm(a_arr))
    norm_b = float(np.linalg.norm(b_arr))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    similarity = float(np.dot(a_arr, b_arr)) / (norm_a * norm_b)
    return float(np.clip(similarity, -1.0, 1.0))


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Calculate Euclidean distance between two vectors (lower is more similar)."""
    a_arr, b_arr = _pair(a, b)
    return float(np.linalg.norm(a_arr - b_arr))


def euclidean_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Convert Euclidean distance to a similarity in (0, 1], 1 when identical."""
    return 1.0 / (1.0 + euclidean_distance(a, b))


@dataclass(frozen=True)
class SimilarityMetric:
    """
    A named similarity function tagged with its metric family.

    Calling the metric validates that both vectors have the same length before
    delegating to the wrapped function, so user-supplied functions get the same
    dimension checking as the built-ins.
    """

    name: str
    kind: MetricKind
    fn: SimilarityFn

    def __call__(self, a: Sequence[float], b: Sequence[float]) -> float:
        if len(a) != len(b):
            raise VectorStoreDimensionError(len(a), len(b))
        return float(self.fn(a, b))

    def distance(self, member: Sequence[float], center: Sequence[float]) -> float:
        """
        Distance from a cluster member to the cluster center, for radius upkeep.

        Cosine metrics use ``1 - similarity``; every other kind uses Euclidean
        distance.
        """
        if self.kind is MetricKind.COSINE:
            return max(0.0, 1.0 - self(member, center))
        return euclidean_distance(member, center)


COSINE = SimilarityMetric("cosine", MetricKind.COSINE, cosine_similarity)
EUCLIDEAN = SimilarityMetric("euclidean", MetricKind.EUCLIDEAN, euclidean_similarity)


class SimilarityRegistry:
    """
    Registry of named similarity metrics.

    Snapshots record the metric by name, so any custom metric that should
    survive an export/import round trip must be registered here.
    """

    _metrics: Dict[str, SimilarityMetric] = {
        COSINE.name: COSINE,
        EUCLIDEAN.name: EUCLIDEAN,
    }

    @classmethod
    def register(
        cls,
        name: str,
        fn: Union[SimilarityFn, SimilarityMetric],
        kind: MetricKind = MetricKind.CUSTOM,
    ) -> SimilarityMetric:
        """
        Register a similarity function under a name.

        Args:
            name: Name used in configuration and snapshots
            fn: Similarity callable or an existing metric
            kind: Metric family (ignored when fn is already a SimilarityMetric)

        Returns:
            The registered metric
        """
        if not callable(fn):
            raise ValueError(f"Similarity function for '{name}' must be callable")

        key = name.lower()
        if isinstance(fn, SimilarityMetric):
            metric = SimilarityMetric(key, fn.kind, fn.fn)
        else:
            metric = SimilarityMetric(key, kind, fn)

        if key in cls._metrics:
            logger.warning(f"Replacing registered similarity metric '{key}'")
        cls._metrics[key] = metric
        return metric

    @classmethod
    def unregister(cls, name: str) -> bool:
        """Remove a custom metric. Built-in metrics cannot be removed."""
        key = name.lower()
        if key in (COSINE.name, EUCLIDEAN.name):
            raise ValueError(f"Cannot unregister built-in similarity metric '{key}'")
        return cls._metrics.pop(key, None) is not None

    @classmethod
    def get(cls, name: str) -> SimilarityMetric:
        """
        Look up a metric by name.

        Raises:
            ValueError: If no metric is registered under the name
        """
        key = name.lower()
        if key not in cls._metrics:
            available = ", ".join(cls._metrics.keys())
            raise ValueError(
                f"Unsupported similarity metric: {name}. Available metrics: {available}"
            )
        return cls._metrics[key]

    @classmethod
    def available(cls) -> List[str]:
        """Return the names of all registered metrics."""
        return list(cls._metrics.keys())


def register_similarity(
    name: str, fn: Union[SimilarityFn, SimilarityMetric], kind: MetricKind = MetricKind.CUSTOM
) -> SimilarityMetric:
    """Register a similarity function. See SimilarityRegistry.register."""
    return SimilarityRegistry.register(name, fn, kind)


def get_similarity(name: str) -> SimilarityMetric:
    """Look up a registered similarity metric by name."""
    return SimilarityRegistry.get(name)


def available_similarities() -> List[str]:
    """Return the names of all registered similarity metrics."""
    return SimilarityRegistry.available()


def resolve_similarity(value: Optional[Any]) -> SimilarityMetric:
    """
    Turn a similarity option into a SimilarityMetric.

    Accepts None (cosine), a registered name, a SimilarityMetric, or a plain
    callable. Plain callables that are the built-in functions map to the
    built-in metrics; any other callable becomes a CUSTOM metric named after it.
    """
    if value is None:
        return COSINE
    if isinstance(value, SimilarityMetric):
        return value
    if isinstance(value, str):
        return SimilarityRegistry.get(value)
    if callable(value):
        for metric in SimilarityRegistry._metrics.values():
            if metric.fn is value:
                return metric
        name = getattr(value, "__name__", None) or type(value).__name__
        return SimilarityMetric(name, MetricKind.CUSTOM, value)
    raise ValueError(f"Invalid similarity option: {value!r}")

"""
Data model for the clustered vector store.

Entries are owned by the vector index; clusters only hold entry identifiers and
dereference them through the index when their center or radius is recomputed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from clustervec.interfaces import as_vector


@dataclass(eq=False)
class VectorEntry:
    """A stored vector with its identifier and optional opaque metadata."""

    id: str
    vector: np.ndarray
    metadata: Any = None

    def copy(self) -> "VectorEntry":
        """Return a copy whose vector can be mutated without touching the stored one."""
        return VectorEntry(id=self.id, vector=self.vector.copy(), metadata=self.metadata)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the entry to a dictionary representation.

        Returns:
            Dictionary with id, vector (as a list of floats) and metadata
        """
        return {
            "id": self.id,
            "vector": self.vector.tolist(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VectorEntry":
        """
        Create a VectorEntry from a dictionary representation.

        Args:
            data: Dictionary containing id, vector and optional metadata

        Returns:
            A new VectorEntry instance
        """
        return cls(
            id=str(data["id"]),
            vector=as_vector(data["vector"]),
            metadata=data.get("metadata"),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VectorEntry):
            return NotImplemented
        return (
            self.id == other.id
            and np.array_equal(self.vector, other.vector)
            and self.metadata == other.metadata
        )

    def __repr__(self) -> str:
        return f"VectorEntry(id={self.id!r}, dim={len(self.vector)}, metadata={self.metadata!r})"


@dataclass(eq=False)
class Cluster:
    """
    A group of similar vectors.

    member_ids keeps insertion order; split uses it to break ties
    deterministically.
    """

    id: str
    center: np.ndarray
    member_ids: List[str] = field(default_factory=list)
    radius: float = 0.0

    @property
    def size(self) -> int:
        return len(self.member_ids)

    def copy(self) -> "Cluster":
        return Cluster(
            id=self.id,
            center=self.center.copy(),
            member_ids=list(self.member_ids),
            radius=self.radius,
        )

    def to_summary(self, include_radius: bool = True) -> "ClusterSummary":
        return ClusterSummary(
            id=self.id,
            center=self.center.tolist(),
            size=self.size,
            radius=self.radius if include_radius else None,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cluster):
            return NotImplemented
        return (
            self.id == other.id
            and np.array_equal(self.center, other.center)
            and self.member_ids == other.member_ids
            and self.radius == other.radius
        )

    def __repr__(self) -> str:
        return f"Cluster(id={self.id!r}, size={self.size}, radius={self.radius:.6f})"


@dataclass
class ClusterSummary:
    """Read-only view of a cluster as returned by get_clusters."""

    id: str
    center: List[float]
    size: int
    radius: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"id": self.id, "center": self.center, "size": self.size}
        if self.radius is not None:
            result["radius"] = self.radius
        return result


@dataclass
class SearchResult:
    """A single search hit."""

    entry: VectorEntry
    similarity: float
    cluster_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry": self.entry.to_dict(),
            "similarity": self.similarity,
            "cluster_id": self.cluster_id,
        }

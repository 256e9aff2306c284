"""
Abstract interface for clustered vector stores.

This module defines the base interface that clustered store implementations must
implement, along with the exception hierarchy shared by the similarity module,
the vector index and the cluster manager.
"""

import numbers
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Sequence

import numpy as np


class VectorStoreInterface(ABC):
    """
    Abstract base class for clustered vector store implementations.

    A store accepts fixed-dimensionality vectors with optional metadata, groups
    them into similarity clusters and answers nearest-neighbor queries.
    """

    @property
    @abstractmethod
    def dimensions(self) -> Optional[int]:
        """Return the established vector dimension, or None while the store is empty."""
        pass

    @abstractmethod
    def insert(self, vector: Sequence[float], metadata: Any = None) -> str:
        """
        Insert a vector into the store.

        Args:
            vector: The vector to insert
            metadata: Optional opaque metadata stored alongside the vector

        Returns:
            ID of the new vector entry
        """
        pass

    @abstractmethod
    def search(
        self,
        query: Sequence[float],
        limit: Optional[int] = None,
        min_similarity: Optional[float] = None,
        search_all_clusters: Optional[bool] = None,
    ) -> List[Any]:
        """
        Find the vectors most similar to the query.

        Args:
            query: Query vector
            limit: Maximum number of results
            min_similarity: Minimum similarity a result must reach
            search_all_clusters: Score every stored vector instead of pruning by cluster

        Returns:
            Search results ordered by similarity, highest first
        """
        pass

    @abstractmethod
    def get_vector_by_id(self, vector_id: str) -> Optional[Any]:
        """
        Get a specific vector entry by ID.

        Args:
            vector_id: ID of the vector to retrieve

        Returns:
            The vector entry, or None if not found
        """
        pass

    @abstractmethod
    def remove_vector(self, vector_id: str) -> bool:
        """
        Remove a vector from the store.

        Args:
            vector_id: ID of the vector to remove

        Returns:
            True if the vector existed and was removed, False otherwise
        """
        pass

    @abstractmethod
    def update_metadata(self, vector_id: str, metadata: Any) -> bool:
        """
        Replace a vector's metadata.

        Args:
            vector_id: ID of the vector to update
            metadata: The new metadata

        Returns:
            True if the vector exists and was updated, False otherwise
        """
        pass

    @abstractmethod
    def get_all_vectors(self) -> List[Any]:
        """Return a snapshot of every stored vector entry."""
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary with vector count, cluster count, dimensions and cluster size stats
        """
        pass

    def health_check(self) -> Dict[str, Any]:
        """
        Perform a health check on the store.

        Returns:
            Dictionary with health status information
        """
        try:
            stats = self.get_stats()
            return {"status": "healthy", "stats": stats}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}

    def __str__(self) -> str:
        """String representation of the vector store."""
        return f"{self.__class__.__name__}(dim={self.dimensions})"


class VectorStoreError(Exception):
    """Base exception for vector store related errors."""

    pass


class VectorStoreOperationError(VectorStoreError):
    """Exception raised for operation failures."""

    pass


class VectorStoreDimensionError(VectorStoreError):
    """Exception raised for dimension mismatches."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector dimension mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class InvalidVectorError(VectorStoreError):
    """Exception raised for empty, non-numeric or non-finite vectors."""

    pass


class MaxClustersExceededError(VectorStoreError):
    """Exception raised when creating a cluster would exceed the configured cap."""

    def __init__(self, max_clusters: int):
        super().__init__(f"Maximum number of clusters ({max_clusters}) reached")
        self.max_clusters = max_clusters


class InvalidClusterError(VectorStoreError):
    """Exception raised for unknown cluster IDs."""

    pass


class InsufficientMembersError(VectorStoreError):
    """Exception raised when splitting a cluster with fewer than two members."""

    def __init__(self, cluster_id: str, size: int):
        super().__init__(
            f"Cannot split cluster {cluster_id} with fewer than 2 members (has {size})"
        )
        self.cluster_id = cluster_id
        self.size = size


class SnapshotError(VectorStoreError):
    """Exception raised for malformed or inconsistent snapshots."""

    pass


def as_vector(values: Any) -> np.ndarray:
    """
    Validate a candidate vector and convert it to a float64 array.

    Args:
        values: A sequence or array of real numbers

    Returns:
        A fresh one-dimensional float64 array

    Raises:
        InvalidVectorError: If the vector is empty, not one-dimensional, contains
            non-numeric elements (booleans included) or non-finite values
    """
    if isinstance(values, (str, bytes)) or values is None:
        raise InvalidVectorError("Vector must be a non-empty sequence of numbers")

    if isinstance(values, np.ndarray):
        if values.ndim != 1:
            raise InvalidVectorError(
                f"Vector must be one-dimensional, got array of shape {values.shape}"
            )
        if values.dtype == np.bool_ or not np.issubdtype(values.dtype, np.number):
            raise InvalidVectorError(f"Vector elements must be real numbers, got {values.dtype}")
        if np.iscomplexobj(values):
            raise InvalidVectorError("Vector elements must be real numbers, got complex")
        items = values.tolist()
    else:
        try:
            items = list(values)
        except TypeError:
            raise InvalidVectorError("Vector must be a non-empty sequence of numbers")

    if not items:
        raise InvalidVectorError("Vector must be a non-empty sequence of numbers")

    for i, value in enumerate(items):
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
            raise InvalidVectorError(f"Invalid vector: element at index {i} is not a number")

    vector = np.array(items, dtype=np.float64)
    bad = np.flatnonzero(~np.isfinite(vector))
    if bad.size:
        raise InvalidVectorError(f"Invalid vector: element at index {int(bad[0])} is not finite")

    return vector

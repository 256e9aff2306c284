"""
Interfaces for clustered vector store implementations.
"""

from .vector_store_interface import (
    VectorStoreInterface,
    VectorStoreError,
    VectorStoreOperationError,
    VectorStoreDimensionError,
    InvalidVectorError,
    MaxClustersExceededError,
    InvalidClusterError,
    InsufficientMembersError,
    SnapshotError,
    as_vector,
)

__all__ = [
    "VectorStoreInterface",
    "VectorStoreError",
    "VectorStoreOperationError",
    "VectorStoreDimensionError",
    "InvalidVectorError",
    "MaxClustersExceededError",
    "InvalidClusterError",
    "InsufficientMembersError",
    "SnapshotError",
    "as_vector",
]

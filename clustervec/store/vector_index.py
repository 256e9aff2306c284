"""
Canonical storage of vector entries.

The index is the only owner of vector data and metadata. It knows nothing about
clusters; the cluster manager keeps identifiers and looks entries up here.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional

import numpy as np

from clustervec.interfaces import VectorStoreOperationError
from clustervec.store.models import VectorEntry


class VectorIndex:
    """Mapping from entry ID to VectorEntry, in insertion order."""

    def __init__(self):
        self._entries: Dict[str, VectorEntry] = {}

    def put(self, entry: VectorEntry) -> None:
        """
        Store a new entry.

        Raises:
            VectorStoreOperationError: If an entry with the same ID already exists
        """
        if entry.id in self._entries:
            raise VectorStoreOperationError(f"Duplicate vector ID: {entry.id}")
        self._entries[entry.id] = entry

    def get(self, vector_id: str) -> Optional[VectorEntry]:
        return self._entries.get(vector_id)

    def remove(self, vector_id: str) -> Optional[VectorEntry]:
        return self._entries.pop(vector_id, None)

    def update_metadata(self, vector_id: str, metadata: Any) -> bool:
        entry = self._entries.get(vector_id)
        if entry is None:
            return False
        entry.metadata = metadata
        return True

    def all(self) -> List[VectorEntry]:
        """Return the stored entries as a list (a snapshot of the current contents)."""
        return list(self._entries.values())

    def ids(self) -> List[str]:
        return list(self._entries.keys())

    def vectors_for(self, vector_ids: Iterable[str]) -> np.ndarray:
        """
        Stack the vectors of the given entries into a (n, dim) matrix.

        Raises:
            VectorStoreOperationError: If any ID is not indexed
        """
        try:
            rows = [self._entries[vector_id].vector for vector_id in vector_ids]
        except KeyError as e:
            raise VectorStoreOperationError(f"Vector {e.args[0]} is not indexed")
        if not rows:
            raise VectorStoreOperationError("Cannot stack an empty set of vectors")
        return np.vstack(rows)

    def reorder(self, vector_ids: Iterable[str]) -> None:
        """
        Rearrange the entries into the given ID order.

        Raises:
            VectorStoreOperationError: If the IDs are not exactly the indexed ones
        """
        vector_ids = list(vector_ids)
        if len(vector_ids) != len(self._entries) or set(vector_ids) != set(self._entries):
            raise VectorStoreOperationError("Vector order does not match the indexed entries")
        self._entries = {vector_id: self._entries[vector_id] for vector_id in vector_ids}

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, vector_id: object) -> bool:
        return vector_id in self._entries

    def __iter__(self) -> Iterator[VectorEntry]:
        return iter(list(self._entries.values()))

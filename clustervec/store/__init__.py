"""
Clustered vector store.

Usage:
    from clustervec.store import ClusteredVectorStore

    store = ClusteredVectorStore({"similarity": "cosine", "cluster_threshold": 0.9})
    vector_id = store.insert([0.1, 0.2, 0.3], metadata={"doc": "a"})
    results = store.search([0.1, 0.2, 0.25], limit=5)
"""

from .models import VectorEntry, Cluster, ClusterSummary, SearchResult
from .vector_index import VectorIndex
from .options import StoreOptions
from .cluster_manager import ClusterManager
from .snapshot import SNAPSHOT_VERSION, export_state, import_state
from .clustered_store import ClusteredVectorStore

__all__ = [
    "VectorEntry",
    "Cluster",
    "ClusterSummary",
    "SearchResult",
    "VectorIndex",
    "StoreOptions",
    "ClusterManager",
    "SNAPSHOT_VERSION",
    "export_state",
    "import_state",
    "ClusteredVectorStore",
]

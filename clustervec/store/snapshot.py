"""
Whole-store snapshots.

A snapshot is a JSON-compatible dictionary holding the dimensions, the options
(with the similarity metric recorded by name), every cluster with its member
entries, and the vector-to-cluster mapping.
"""

import copy
import json
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from clustervec.similarity import resolve_similarity
from clustervec.interfaces import (
    VectorStoreError,
    SnapshotError,
    as_vector,
)
from clustervec.store.cluster_manager import ClusterManager
from clustervec.store.models import Cluster, VectorEntry
from clustervec.store.options import StoreOptions

SNAPSHOT_VERSION = 1


def export_state(
    manager: ClusterManager, search: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Serialize a cluster manager's full state.

    Args:
        manager: The manager to export
        search: Search defaults of the owning store, recorded when given

    Returns:
        Snapshot dictionary
    """
    clusters = []
    for cluster in manager.clusters:
        clusters.append(
            {
                "id": cluster.id,
                "center": cluster.center.tolist(),
                "radius": cluster.radius,
                "members": [
                    copy.deepcopy(entry.to_dict())
                    for entry in manager.member_entries(cluster.id)
                ],
            }
        )

    data = {
        "version": SNAPSHOT_VERSION,
        "dimensions": manager.dimensions,
        "options": manager.options.to_dict(),
        "clusters": clusters,
        "vector_to_cluster": manager.vector_to_cluster,
    }
    if search is not None:
        data["search"] = dict(search)
    return data


def _parse_cluster(data: Dict[str, Any]) -> Tuple[Cluster, List[VectorEntry]]:
    members = data.get("members") or []
    if not members:
        raise SnapshotError(f"Cluster {data.get('id')} has no members")
    entries = [VectorEntry.from_dict(member) for member in members]
    radius = float(data.get("radius", 0.0))
    if radius < 0:
        raise SnapshotError(f"Cluster {data.get('id')} has negative radius {radius}")
    cluster = Cluster(id=str(data["id"]), center=as_vector(data["center"]), radius=radius)
    return cluster, entries


def import_state(data: Dict[str, Any], similarity: Optional[Any] = None) -> ClusterManager:
    """
    Rebuild a cluster manager from a snapshot.

    The vector index is rebuilt by walking every cluster's members and then put
    back into the key order of ``vector_to_cluster``, which is the insertion
    order of the exported store. Centers and radii are restored verbatim.

    Args:
        data: Snapshot dictionary produced by export_state
        similarity: Similarity override; when None the metric is looked up by
            the name recorded in the snapshot

    Returns:
        A manager equivalent to the exported one

    Raises:
        SnapshotError: If the snapshot is malformed or inconsistent
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a dictionary")

    version = data.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {version}")

    option_data = dict(data.get("options") or {})
    try:
        if similarity is not None:
            option_data["similarity"] = resolve_similarity(similarity)
        options = StoreOptions.from_dict(option_data)
    except ValueError as e:
        raise SnapshotError(f"Invalid snapshot options: {e}") from e

    dimensions = data.get("dimensions")
    raw_clusters = data.get("clusters") or []
    if dimensions is None and raw_clusters:
        raise SnapshotError("Snapshot has clusters but no dimensions")
    if dimensions is not None and (
        isinstance(dimensions, bool) or not isinstance(dimensions, int) or dimensions < 1
    ):
        raise SnapshotError(f"Invalid snapshot dimensions: {dimensions!r}")

    mapping = data.get("vector_to_cluster")
    if mapping is not None and not isinstance(mapping, dict):
        raise SnapshotError("Snapshot vector_to_cluster mapping must be a dictionary")

    manager = ClusterManager(options)
    try:
        parsed = [_parse_cluster(cluster) for cluster in raw_clusters]
        manager.restore(dimensions, parsed, order=mapping)
    except SnapshotError:
        raise
    except (VectorStoreError, KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e

    if mapping is not None and mapping != manager.vector_to_cluster:
        raise SnapshotError("Snapshot vector_to_cluster mapping disagrees with cluster membership")

    return manager


class _SnapshotEncoder(json.JSONEncoder):
    """Encodes NumPy scalars and arrays that may appear in metadata."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.generic):
            return obj.item()
        return super().default(obj)


def dumps(data: Dict[str, Any], pretty: bool = False) -> str:
    """Serialize a snapshot dictionary to JSON text."""
    return json.dumps(data, cls=_SnapshotEncoder, indent=2 if pretty else None)


def loads(text: str) -> Dict[str, Any]:
    """Parse JSON text into a snapshot dictionary."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e

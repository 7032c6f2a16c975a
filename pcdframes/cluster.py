"""Euclidean cluster extraction."""

from __future__ import annotations

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import cKDTree


def euclidean_clusters(xyz, tolerance=0.3, min_size=600, max_size=1500) -> list[np.ndarray]:
    """Group points linked by chains of neighbours closer than ``tolerance``.

    Returns the sorted point indices of every cluster whose size lies in
    ``[min_size, max_size]``, largest cluster first. Points with non-finite
    coordinates belong to no cluster.
    """
    if not tolerance > 0:
        raise ValueError(f"cluster tolerance must be positive, got {tolerance!r}")
    points = np.asarray(xyz, dtype=np.float64).reshape(-1, 3)
    finite = np.flatnonzero(np.isfinite(points).all(axis=1))
    if len(finite) == 0:
        return []

    count = len(finite)
    tree = cKDTree(points[finite])
    pairs = tree.query_pairs(tolerance, output_type="ndarray")
    graph = coo_matrix(
        (np.ones(len(pairs), dtype=np.int8), (pairs[:, 0], pairs[:, 1])),
        shape=(count, count),
    )
    components, labels = connected_components(graph, directed=False)

    order = np.argsort(labels, kind="stable")
    sizes = np.bincount(labels, minlength=components)
    groups = np.split(order, np.cumsum(sizes)[:-1])
    clusters = [finite[group] for group in groups if min_size <= len(group) <= max_size]
    clusters.sort(key=len, reverse=True)
    return clusters
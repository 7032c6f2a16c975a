"""Voxel grid downsampling."""

from __future__ import annotations

import warnings

import numpy as np

from .pcd import PointCloud

_INT_MAX = 2**31 - 1


def voxel_grid_filter(cloud: PointCloud, leaf_size) -> PointCloud:
    """Replace the points of each voxel by their centroid, ordered by voxel index.

    Each output point carries the floor of its voxel's mean frame id. A grid
    too fine for 32-bit voxel indices returns the input with a warning.
    """
    leaf = np.broadcast_to(np.asarray(leaf_size, dtype=np.float32), (3,))
    if not np.all(np.isfinite(leaf) & (leaf > 0)):
        raise ValueError(f"leaf size must be positive, got {leaf_size!r}")

    finite = np.isfinite(cloud.xyz).all(axis=1)
    points, frame_ids = cloud.xyz[finite], cloud.frame_id[finite]
    if len(points) == 0:
        return PointCloud.from_xyz(np.empty((0, 3)), 0)

    inverse_leaf = (np.float32(1.0) / leaf).astype(np.float32)
    min_p, max_p = points.min(axis=0), points.max(axis=0)
    span = [int(v) + 1 for v in (max_p - min_p) * inverse_leaf]
    if span[0] * span[1] * span[2] > _INT_MAX:
        warnings.warn("leaf size is too small for the input; voxel indices would overflow",
                      RuntimeWarning, stacklevel=2)
        return PointCloud(cloud.xyz.copy(), cloud.frame_id.copy())

    min_b = np.floor(min_p * inverse_leaf).astype(np.int64)
    div_b = np.floor(max_p * inverse_leaf).astype(np.int64) - min_b + 1
    multipliers = np.array([1, div_b[0], div_b[0] * div_b[1]], dtype=np.int64)
    voxel_index = (np.floor(points * inverse_leaf).astype(np.int64) - min_b) @ multipliers

    keys, inverse, counts = np.unique(voxel_index, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)
    sums = np.stack(
        [np.bincount(inverse, weights=points[:, axis].astype(np.float64), minlength=len(keys))
         for axis in range(3)],
        axis=1,
    )
    id_sums = np.bincount(inverse, weights=frame_ids.astype(np.float64), minlength=len(keys))
    return PointCloud(sums / counts[:, None], np.floor(id_sums / counts).astype(np.uint32))
"""Per-frame processing: downsampling, ground removal and clustering."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .cluster import euclidean_clusters
from .frames import iter_frames
from .pcd import PointCloud
from .segmentation import PlaneModel, SegmentationError, segment_plane, split_indices
from .voxel import voxel_grid_filter

logger = logging.getLogger(__name__)

DEFAULT_LEAF_SIZE = (0.07, 0.2, 0.2)
DEFAULT_DISTANCE_THRESHOLD = 0.5
DEFAULT_TOLERANCE = 0.3
DEFAULT_MIN_SIZE = 600
DEFAULT_MAX_SIZE = 1500


@dataclass(eq=False)
class ColoredCloud:
    """Points as an (N, 3) float32 array with (N, 3) uint8 colours, white by default."""

    xyz: np.ndarray
    rgb: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.xyz = PointCloud.from_xyz(self.xyz).xyz
        if self.rgb is None:
            rgb = np.full((len(self.xyz), 3), 255, dtype=np.uint8)
        else:
            rgb = np.array(self.rgb, dtype=np.uint8)
            if rgb.size == 0:
                rgb = rgb.reshape(0, 3)
        if rgb.shape != (len(self.xyz), 3):
            raise ValueError(f"rgb must have shape ({len(self.xyz)}, 3), got {rgb.shape}")
        self.rgb = rgb

    def __len__(self) -> int:
        return len(self.xyz)

    def concat(self, other: "ColoredCloud") -> "ColoredCloud":
        """Return this cloud's points followed by the other cloud's points."""
        return ColoredCloud(np.concatenate([self.xyz, other.xyz]), np.concatenate([self.rgb, other.rgb]))


@dataclass(eq=False)
class FrameResult:
    """The outcome of processing one frame."""

    frame_id: int
    cloud: ColoredCloud
    plane: Optional[PlaneModel]
    input_points: int
    filtered_points: int
    ground_points: int
    clusters: int


def _cluster_red(cloud: ColoredCloud, tolerance, min_size, max_size) -> int:
    clusters = euclidean_clusters(cloud.xyz, tolerance, min_size, max_size)
    for indices in clusters:
        cloud.rgb[indices, 1:] = 0
    return len(clusters)


def downsample_frames(cloud: PointCloud, leaf_size=DEFAULT_LEAF_SIZE) -> PointCloud:
    """Voxel-filter every frame and join the results, each tagged with its frame id."""
    result = PointCloud.from_xyz(np.empty((0, 3)), 0)
    for frame in iter_frames(cloud):
        logger.info("PointCloud before filtering: %d data points", len(frame.cloud))
        filtered = voxel_grid_filter(frame.cloud, leaf_size)
        result = result.concat(PointCloud.from_xyz(filtered.xyz, frame.frame_id))
        logger.info("PointCloud after filtering: %d data points", len(filtered))
    return result


def remove_ground(cloud: PointCloud, distance_threshold=DEFAULT_DISTANCE_THRESHOLD, rng=None):
    """Fit the ground plane and return ``(model, plane_cloud, rest_cloud)``."""
    model, inliers = segment_plane(cloud.xyz, distance_threshold=distance_threshold, optimize=True, rng=rng)
    inside, outside = split_indices(len(cloud), inliers)
    return model, cloud.select(inside), cloud.select(outside)


def cluster_frames(cloud: PointCloud, tolerance=DEFAULT_TOLERANCE, min_size=DEFAULT_MIN_SIZE,
                   max_size=DEFAULT_MAX_SIZE) -> list[ColoredCloud]:
    """Return one white cloud per frame with its clustered points coloured red."""
    results = []
    for frame in iter_frames(cloud):
        started = time.process_time()
        colored = ColoredCloud(frame.cloud.xyz)
        count = _cluster_red(colored, tolerance, min_size, max_size)
        logger.info("Cluster cost %gseconds", time.process_time() - started)
        logger.info("cluster cloud size: %d", count)
        results.append(colored)
    return results


def process_frames(cloud: PointCloud, leaf_size=DEFAULT_LEAF_SIZE,
                   distance_threshold=DEFAULT_DISTANCE_THRESHOLD, tolerance=DEFAULT_TOLERANCE,
                   min_size=DEFAULT_MIN_SIZE, max_size=DEFAULT_MAX_SIZE, rng=None) -> list[FrameResult]:
    """Downsample, remove the ground and cluster each frame.

    Each result holds the non-ground points (clustered ones red) followed by
    the white ground points; a frame without a plane keeps all points as non-ground.
    """
    generator = np.random.default_rng(rng)
    results = []
    for frame in iter_frames(cloud):
        logger.info("PointCloud before filtering: %d data points", len(frame.cloud))
        started = time.process_time()
        filtered = voxel_grid_filter(frame.cloud, leaf_size)
        logger.info("PointCloud after filtering: %d data points Cost %g Seconds",
                    len(filtered), time.process_time() - started)

        started = time.process_time()
        try:
            model, inliers = segment_plane(filtered.xyz, distance_threshold=distance_threshold,
                                           optimize=True, rng=generator)
        except SegmentationError:
            model, inliers = None, np.empty(0, dtype=np.intp)
        inside, outside = split_indices(len(filtered), inliers)
        plane_cloud, rest_cloud = ColoredCloud(filtered.xyz[inside]), ColoredCloud(filtered.xyz[outside])
        logger.info("Removing ground cost %gseconds", time.process_time() - started)

        started = time.process_time()
        count = _cluster_red(rest_cloud, tolerance, min_size, max_size)
        logger.info("Cluster cost %gseconds", time.process_time() - started)

        results.append(FrameResult(
            frame_id=frame.frame_id,
            cloud=rest_cloud.concat(plane_cloud),
            plane=model,
            input_points=len(frame.cloud),
            filtered_points=len(filtered),
            ground_points=len(plane_cloud),
            clusters=count,
        ))
    return results
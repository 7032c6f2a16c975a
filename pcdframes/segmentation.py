"""Plane segmentation by RANSAC and splitting a cloud into inliers and the rest."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

_PROBABILITY = 0.99
_FAILURE = "Could not estimate a planar model for the given dataset."


class SegmentationError(RuntimeError):
    """Raised when no planar model can be estimated for the given points."""


@dataclass(frozen=True)
class PlaneModel:
    """A plane a*x + b*y + c*z + d = 0 whose normal (a, b, c) has unit length."""

    a: float
    b: float
    c: float
    d: float

    @property
    def coefficients(self) -> tuple[float, float, float, float]:
        return (self.a, self.b, self.c, self.d)

    @property
    def normal(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c], dtype=np.float64)

    def distances(self, xyz) -> np.ndarray:
        """Return the distance of every point to the plane."""
        return np.abs(np.asarray(xyz, dtype=np.float64).reshape(-1, 3) @ self.normal + self.d)


def _plane(normal: np.ndarray, point: np.ndarray) -> PlaneModel:
    return PlaneModel(*(float(v) for v in normal), float(-normal @ point))


def _plane_from_sample(sample: np.ndarray) -> PlaneModel | None:
    first, second = sample[1] - sample[0], sample[2] - sample[0]
    normal = np.cross(first, second)
    norm = float(np.linalg.norm(normal))
    scale = max(1.0, float(np.linalg.norm(first) * np.linalg.norm(second)))
    if not math.isfinite(norm) or norm <= np.finfo(np.float64).eps * scale:
        return None
    return _plane(normal / norm, sample[0])


def _refit(points: np.ndarray) -> PlaneModel:
    centroid = points.mean(axis=0)
    centred = points - centroid
    return _plane(np.linalg.eigh(centred.T @ centred)[1][:, 0], centroid)


def segment_plane(xyz, distance_threshold=0.5, max_iterations=50, optimize=True, rng=None):
    """Fit a plane with RANSAC and return ``(model, inlier_indices)``.

    Inliers lie closer than ``distance_threshold``; with ``optimize`` the model
    is refitted by least squares on its inliers, which are then selected again.
    """
    if not distance_threshold > 0:
        raise ValueError(f"distance threshold must be positive, got {distance_threshold!r}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations!r}")
    points = np.asarray(xyz, dtype=np.float64).reshape(-1, 3)
    candidates = np.flatnonzero(np.isfinite(points).all(axis=1))
    if len(candidates) < 3:
        raise SegmentationError(_FAILURE)

    generator = np.random.default_rng(rng)
    eps = np.finfo(np.float64).eps
    best, best_count, needed, iterations, skipped = None, 0, 1.0, 0, 0
    with np.errstate(invalid="ignore"):
        while iterations < needed and skipped < max_iterations * 10:
            model = _plane_from_sample(points[generator.choice(candidates, 3, replace=False)])
            if model is None:
                skipped += 1
                continue
            count = int(np.count_nonzero(model.distances(points) < distance_threshold))
            if count > best_count:
                best, best_count = model, count
                no_outliers = min(max(eps, 1.0 - (count / len(points)) ** 3), 1.0 - eps)
                needed = math.log(1.0 - _PROBABILITY) / math.log(no_outliers)
            iterations += 1
            if iterations > max_iterations:
                break
        if best is None:
            raise SegmentationError(_FAILURE)
        inliers = np.flatnonzero(best.distances(points) < distance_threshold)
        if optimize and len(inliers) > 3:
            best = _refit(points[inliers])
            inliers = np.flatnonzero(best.distances(points) < distance_threshold)
    if len(inliers) == 0:
        raise SegmentationError(_FAILURE)
    return best, inliers


def split_indices(count, inliers):
    """Return ``(inside, outside)``: the sorted inlier indices and all other indices."""
    inside = np.unique(np.asarray(inliers, dtype=np.intp))
    if inside.size and (inside[0] < 0 or inside[-1] >= count):
        raise IndexError(f"inlier indices must lie in [0, {count})")
    mask = np.zeros(count, dtype=bool)
    mask[inside] = True
    return inside, np.flatnonzero(~mask)
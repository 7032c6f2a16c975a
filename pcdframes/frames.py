"""Splitting a multi-frame cloud into per-frame clouds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .pcd import PointCloud


@dataclass(eq=False)
class Frame:
    """One frame's points together with the id they were grouped under."""

    frame_id: int
    cloud: PointCloud


def iter_frames(cloud: PointCloud) -> Iterator[Frame]:
    """Yield each frame of a cloud ordered by frame id.

    The first point of the first non-zero frame only sets that id and is
    dropped; the last frame is never yielded.
    """
    ids = cloud.frame_id
    if len(ids) == 0:
        return
    bounds = np.concatenate([[0], np.flatnonzero(np.diff(ids)) + 1, [len(ids)]])
    current = 0
    pending: list[np.ndarray] = []
    for start, end in zip(bounds[:-1], bounds[1:]):
        value = int(ids[start])
        if value == current:
            pending.append(np.arange(start, end))
        elif current == 0:
            current = value
            pending.append(np.arange(start + 1, end))
        else:
            yield Frame(current, cloud.select(np.concatenate(pending)))
            current = value
            pending = [np.arange(start, end)]
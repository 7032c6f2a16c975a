"""Animated 3D display of a sequence of coloured point clouds."""

from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation

_TITLE = "RGB PCD Viewer"


def _coords_and_colors(cloud) -> tuple[np.ndarray, np.ndarray]:
    coords = np.asarray(getattr(cloud, "xyz", cloud), dtype=np.float64).reshape(-1, 3)
    rgb = getattr(cloud, "rgb", None)
    if rgb is None:
        return coords, np.ones((len(coords), 3))
    colors = np.asarray(rgb, dtype=np.float64).reshape(-1, 3) / 255.0
    if len(colors) != len(coords):
        raise ValueError(f"cloud has {len(coords)} points but {len(colors)} colours")
    return coords, colors


def _set_limits(ax, frames) -> None:
    lower = np.zeros(3)
    upper = np.ones(3)
    for coords, _ in frames:
        finite = coords[np.isfinite(coords).all(axis=1)]
        if len(finite):
            lower = np.minimum(lower, finite.min(axis=0))
            upper = np.maximum(upper, finite.max(axis=0))
    ax.set_xlim(lower[0], upper[0])
    ax.set_ylim(lower[1], upper[1])
    ax.set_zlim(lower[2], upper[2])


def build_animation(clouds, interval=1000, first=1) -> FuncAnimation:
    """Build a looping animation that shows each cloud for ``interval`` ms.

    Each cloud is an object with ``xyz`` and optionally ``rgb`` (0-255) arrays,
    or a plain (N, 3) array drawn in white. The cloud at index ``first`` is
    drawn initially; the animation then cycles through all clouds in order.
    The view looks at the origin from the +x axis with z up, on black.
    """
    frames = [_coords_and_colors(cloud) for cloud in clouds]
    if not frames:
        raise ValueError("there are no clouds to show")
    if not -len(frames) <= first < len(frames):
        raise IndexError(f"cloud index {first} is out of range for {len(frames)} clouds")

    fig = plt.figure()
    if fig.canvas.manager is not None:
        fig.canvas.manager.set_window_title(_TITLE)
    fig.patch.set_facecolor("black")
    ax = fig.add_subplot(projection="3d")
    ax.set_facecolor("black")
    for axis in (ax.xaxis, ax.yaxis, ax.zaxis):
        axis.set_pane_color((0.0, 0.0, 0.0, 1.0))
    ax.view_init(elev=0, azim=0)
    _set_limits(ax, frames)
    for direction, color in zip(np.eye(3), ("red", "green", "blue")):
        ax.plot([0, direction[0]], [0, direction[1]], [0, direction[2]], color=color)

    scatter = None

    def show_cloud(index):
        nonlocal scatter
        if scatter is not None:
            scatter.remove()
        coords, colors = frames[index]
        scatter = ax.scatter(
            coords[:, 0], coords[:, 1], coords[:, 2], c=colors, s=1, depthshade=False
        )
        return (scatter,)

    show_cloud(first)
    return FuncAnimation(
        fig,
        show_cloud,
        frames=len(frames),
        init_func=lambda: show_cloud(first),
        interval=interval,
        repeat=True,
        blit=False,
    )


def show(clouds, interval=1000, first=1) -> FuncAnimation:
    """Display the clouds in a window until it is closed."""
    animation = build_animation(clouds, interval, first)
    plt.show()
    return animation
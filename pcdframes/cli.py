"""Command line front end for the frame processing tools."""

from __future__ import annotations

import argparse
import logging
import sys

from . import viewer
from .pcd import PcdError, read_pcd, write_pcd
from .pipeline import (
    DEFAULT_DISTANCE_THRESHOLD,
    DEFAULT_LEAF_SIZE,
    DEFAULT_MAX_SIZE,
    DEFAULT_MIN_SIZE,
    DEFAULT_TOLERANCE,
    cluster_frames,
    downsample_frames,
    process_frames,
    remove_ground,
)
from .segmentation import SegmentationError


def _add_leaf(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--leaf-size", type=float, nargs=3, metavar=("X", "Y", "Z"),
        default=list(DEFAULT_LEAF_SIZE), help="voxel size along each axis",
    )


def _add_threshold(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--distance-threshold", type=float, default=DEFAULT_DISTANCE_THRESHOLD,
        help="largest distance of a ground point from the plane",
    )
    parser.add_argument("--seed", type=int, default=None, help="random seed for RANSAC")


def _add_cluster(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tolerance", type=float, default=DEFAULT_TOLERANCE)
    parser.add_argument("--min-size", type=int, default=DEFAULT_MIN_SIZE)
    parser.add_argument("--max-size", type=int, default=DEFAULT_MAX_SIZE)


def _add_view(parser: argparse.ArgumentParser, interval: int) -> None:
    parser.add_argument("--no-view", action="store_true", help="do not open the viewer")
    parser.add_argument(
        "--interval", type=int, default=interval, help="milliseconds per frame in the viewer"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pcdframes", description="Process PCD files holding many frames."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    down = commands.add_parser("downsample", help="voxel-filter every frame")
    down.add_argument("input")
    down.add_argument("-o", "--output", default="downsampled.pcd")
    _add_leaf(down)

    ground = commands.add_parser("ground", help="split the ground plane from the rest")
    ground.add_argument("input")
    ground.add_argument("--plane", default="plane.pcd")
    ground.add_argument("--rest", default="without_plane.pcd")
    _add_threshold(ground)

    cluster = commands.add_parser("cluster", help="cluster each frame and show it")
    cluster.add_argument("input")
    _add_cluster(cluster)
    _add_view(cluster, 1000)

    run = commands.add_parser("run", help="downsample, remove ground, cluster, show")
    run.add_argument("input")
    _add_leaf(run)
    _add_threshold(run)
    _add_cluster(run)
    _add_view(run, 100)
    return parser


def _downsample(args) -> int:
    cloud = read_pcd(args.input)
    write_pcd(args.output, downsample_frames(cloud, tuple(args.leaf_size)), False)
    return 0


def _ground(args) -> int:
    cloud = read_pcd(args.input)
    model, plane, rest = remove_ground(cloud, args.distance_threshold, rng=args.seed)
    print("Model coefficients: " + " ".join(f"{v:g}" for v in model.coefficients),
          file=sys.stderr)
    print(f"Model inliers: {len(plane)}", file=sys.stderr)
    write_pcd(args.plane, plane, False)
    write_pcd(args.rest, rest, False)
    return 0


def _view(clouds, args) -> int:
    if not args.no_view:
        viewer.show(clouds, interval=args.interval, first=1)
    return 0


def _cluster(args) -> int:
    cloud = read_pcd(args.input)
    clouds = cluster_frames(cloud, args.tolerance, args.min_size, args.max_size)
    return _view(clouds, args)


def _run(args) -> int:
    cloud = read_pcd(args.input)
    results = process_frames(
        cloud,
        leaf_size=tuple(args.leaf_size),
        distance_threshold=args.distance_threshold,
        tolerance=args.tolerance,
        min_size=args.min_size,
        max_size=args.max_size,
        rng=args.seed,
    )
    return _view([result.cloud for result in results], args)


_COMMANDS = {
    "downsample": _downsample,
    "ground": _ground,
    "cluster": _cluster,
    "run": _run,
}


def main(argv=None) -> int:
    """Run the command named on the command line and return its exit status."""
    args = _build_parser().parse_args(argv)

    package_logger = logging.getLogger("pcdframes")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    previous_level = package_logger.level
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.INFO)
    try:
        return _COMMANDS[args.command](args)
    except (PcdError, OSError, SegmentationError, ValueError, IndexError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)


if __name__ == "__main__":
    sys.exit(main())
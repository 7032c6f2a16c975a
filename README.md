# pcdframes

Tools for point clouds that hold a sequence of frames in a single PCD file.
Each point has `x`, `y`, `z` and a `frame_id` field. Runs of consecutive
points that share a `frame_id` make up one frame, and every stage works on one
frame at a time.

## What it does

- **Voxel downsampling**: replaces the points in each voxel by their centroid.
  The default leaf is 0.07 × 0.2 × 0.2.
- **Ground removal**: fits a plane with RANSAC (distance threshold 0.5),
  refits it by least squares on its inliers, and splits the plane points from
  the rest.
- **Euclidean clustering**: finds clusters of 600 to 1500 points, linked by
  neighbours closer than 0.3, and colours them red. All other points stay
  white.
- **Viewing**: plays the processed frames as a looping 3D animation with
  matplotlib.

## Installation

```
pip install .
```

Run `pip install .[test]` to install the test dependencies as well.

## Command line

```
pcdframes --help
```

The `pcdframes` command has four subcommands. Each takes the input PCD file as
its first argument. Progress messages go to standard output. Errors go to
standard error, and the command then exits with status 1.

- `pcdframes downsample INPUT [-o OUTPUT] [--leaf-size X Y Z]`
  voxel-filters every frame and writes the joined result as an ASCII PCD
  file (default `downsampled.pcd`). Each point is tagged with its frame id.
- `pcdframes ground INPUT [--plane FILE] [--rest FILE] [--distance-threshold D] [--seed N]`
  fits one plane to the whole file. It prints the plane coefficients and the
  inlier count to standard error. It writes the plane points (default
  `plane.pcd`) and the other points (default `without_plane.pcd`).
- `pcdframes cluster INPUT [--tolerance T] [--min-size N] [--max-size N] [--no-view] [--interval MS]`
  clusters every frame and shows the result. Each frame is shown for 1000 ms
  by default.
- `pcdframes run INPUT [--leaf-size X Y Z] [--distance-threshold D] [--seed N] [--tolerance T] [--min-size N] [--max-size N] [--no-view] [--interval MS]`
  downsamples each frame, removes its ground, clusters the rest and shows the
  result. Each frame is shown for 100 ms by default.

The viewer first shows the second processed frame and then cycles through all
of them. It therefore needs at least two processed frames. Use `--no-view` to
skip the viewer.

## Library use

```python
from pcdframes.pcd import read_pcd, write_pcd
from pcdframes.pipeline import downsample_frames, process_frames
from pcdframes.viewer import show

cloud = read_pcd("scan.pcd")

write_pcd("downsampled.pcd", downsample_frames(cloud, (0.07, 0.2, 0.2)), False)

results = process_frames(cloud, (0.07, 0.2, 0.2), 0.5, 0.3, 600, 1500, None)
show([r.cloud for r in results], 100, 1)
```

Each `FrameResult` carries:

- `frame_id`
- the coloured `cloud`: the non-ground points followed by the ground points
- the fitted `plane`, or `None` if no plane could be fitted
- the point counts `input_points`, `filtered_points` and `ground_points`
- the number of `clusters`

Modules:

- `pcdframes.pcd`: `PointCloud`, `read_pcd` and `write_pcd`.
  - Reading handles ASCII and binary PCD data. The `x`, `y` and `z` fields are
    required, and `frame_id` defaults to 0.
  - Writing always uses the fields `x y z frame_id`.
  - Malformed files raise `PcdError`.
- `pcdframes.frames`: `iter_frames`, which yields `Frame` objects.
- `pcdframes.voxel`: `voxel_grid_filter`.
  - Points with non-finite coordinates are dropped.
  - Each output point carries the floor of its voxel's mean frame id.
  - A grid too fine for 32-bit voxel indices returns the input unchanged,
    with a `RuntimeWarning`.
- `pcdframes.segmentation`: `segment_plane`, `split_indices`, `PlaneModel`
  and `SegmentationError`.
- `pcdframes.cluster`: `euclidean_clusters`. It returns the sorted point
  indices of each cluster, largest cluster first.
- `pcdframes.pipeline`:
  - `downsample_frames`, `remove_ground`, `cluster_frames` and
    `process_frames`
  - `ColoredCloud` and `FrameResult`
- `pcdframes.viewer`: `build_animation` and `show`.

## How frames are split

A frame is yielded only when the next `frame_id` appears, so the last frame in
the file is never processed. The first point of the first non-zero frame only
sets the current id and is dropped. Any points with frame id 0 at the start of
the file are grouped with that first frame.

## What it does not do

- It does not capture from a live sensor. It only reads PCD files.
- It cannot read `binary_compressed` PCD data.
- The clustered, coloured results of `cluster` and `run` are only shown in the
  viewer. They are not written to files.
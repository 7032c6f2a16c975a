import numpy as np

from pcdframes.frames import iter_frames
from pcdframes.pcd import PointCloud


def _cloud(ids):
    xyz = np.column_stack([np.arange(len(ids)), np.zeros(len(ids)), np.zeros(len(ids))])
    return PointCloud.from_xyz(xyz, ids)


def test_first_point_dropped_and_last_frame_not_yielded():
    cloud = _cloud([1, 1, 1, 2, 2, 3, 3])
    frames = list(iter_frames(cloud))
    assert [f.frame_id for f in frames] == [1, 2]
    assert frames[0].cloud.xyz[:, 0].tolist() == [1, 2]
    assert frames[1].cloud.xyz[:, 0].tolist() == [3, 4]


def test_leading_zero_points_join_first_frame():
    cloud = _cloud([0, 0, 5, 5, 6])
    frames = list(iter_frames(cloud))
    assert [f.frame_id for f in frames] == [5]
    assert frames[0].cloud.xyz[:, 0].tolist() == [0, 1, 3]
    assert frames[0].cloud.frame_id.tolist() == [0, 0, 5]


def test_single_frame_yields_nothing():
    assert list(iter_frames(_cloud([4, 4, 4]))) == []


def test_empty_cloud_yields_nothing():
    assert list(iter_frames(_cloud([]))) == []


def test_zero_frame_in_middle_carries_into_next():
    cloud = _cloud([1, 1, 2, 0, 0, 3, 3, 4])
    frames = list(iter_frames(cloud))
    assert [f.frame_id for f in frames] == [1, 2, 3]
    assert frames[1].cloud.xyz[:, 0].tolist() == [2]
    assert frames[2].cloud.xyz[:, 0].tolist() == [3, 4, 6]


def test_frames_hold_points_with_their_ids():
    ids = [1] * 3 + [2] * 4 + [3] * 2 + [4]
    frames = list(iter_frames(_cloud(ids)))
    for frame in frames:
        assert set(frame.cloud.frame_id.tolist()) == {frame.frame_id}
    assert sum(len(f.cloud) for f in frames) == len(ids) - 1 - 1
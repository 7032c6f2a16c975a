import struct

import numpy as np
import pytest

from pcdframes.pcd import PcdError, PointCloud, read_pcd, write_pcd


def _sample():
    xyz = np.array([[0.5, 1.25, -2.0], [3.0, -0.75, 4.5], [0.0, 0.0, 0.0]])
    return PointCloud.from_xyz(xyz, [7, 7, 9])


def _header(data, points, fields="x y z frame_id", size="4 4 4 4", types="F F F U"):
    count = " ".join("1" for _ in fields.split())
    return (
        "# .PCD v0.7 - Point Cloud Data file format\n"
        "VERSION 0.7\n"
        f"FIELDS {fields}\nSIZE {size}\nTYPE {types}\nCOUNT {count}\n"
        f"WIDTH {points}\nHEIGHT 1\nVIEWPOINT 0 0 0 1 0 0 0\n"
        f"POINTS {points}\nDATA {data}\n"
    ).encode("ascii")


def _lzf_literals(raw):
    out = bytearray()
    for start in range(0, len(raw), 32):
        chunk = raw[start : start + 32]
        out.append(len(chunk) - 1)
        out += chunk
    return bytes(out)


def test_len_and_from_xyz_broadcasts_scalar_frame_id():
    cloud = PointCloud.from_xyz([[1, 2, 3], [4, 5, 6]], 3)
    assert len(cloud) == 2
    assert cloud.frame_id.tolist() == [3, 3]
    assert cloud.xyz.dtype == np.float32


def test_mismatched_frame_ids_rejected():
    with pytest.raises(ValueError):
        PointCloud.from_xyz([[1, 2, 3], [4, 5, 6]], [1, 2, 3])


def test_bad_xyz_shape_rejected():
    with pytest.raises(ValueError):
        PointCloud.from_xyz([[1, 2], [3, 4]], 0)


def test_select_keeps_order_of_indices():
    cloud = _sample()
    picked = cloud.select([2, 0])
    np.testing.assert_array_equal(picked.xyz, cloud.xyz[[2, 0]])
    assert picked.frame_id.tolist() == [9, 7]


def test_select_with_mask_and_empty():
    cloud = _sample()
    assert cloud.select(np.array([True, False, True])).frame_id.tolist() == [7, 9]
    assert len(cloud.select([])) == 0


def test_concat_appends_points():
    cloud = _sample()
    both = cloud.concat(cloud.select([1]))
    assert len(both) == 4
    np.testing.assert_array_equal(both.xyz[3], cloud.xyz[1])
    assert both.frame_id.tolist() == [7, 7, 9, 7]


@pytest.mark.parametrize("binary", [False, True])
def test_round_trip(tmp_path, binary):
    cloud = _sample()
    path = tmp_path / "cloud.pcd"
    write_pcd(path, cloud, binary)
    back = read_pcd(path)
    np.testing.assert_array_equal(back.xyz, cloud.xyz)
    np.testing.assert_array_equal(back.frame_id, cloud.frame_id)


def test_round_trip_preserves_float32_precision(tmp_path):
    rng = np.random.default_rng(1)
    cloud = PointCloud.from_xyz(rng.normal(size=(50, 3)) * 100, np.arange(50))
    path = tmp_path / "cloud.pcd"
    write_pcd(path, cloud, False)
    np.testing.assert_array_equal(read_pcd(path).xyz, cloud.xyz)


def test_ascii_header_lines(tmp_path):
    path = tmp_path / "cloud.pcd"
    write_pcd(path, _sample(), False)
    lines = path.read_text().splitlines()
    assert "FIELDS x y z frame_id" in lines
    assert "TYPE F F F U" in lines
    assert "POINTS 3" in lines
    assert "DATA ascii" in lines


def test_binary_size_is_header_plus_records(tmp_path):
    path = tmp_path / "cloud.pcd"
    write_pcd(path, _sample(), True)
    content = path.read_bytes()
    header_end = content.index(b"DATA binary\n") + len(b"DATA binary\n")
    assert len(content) - header_end == 3 * 16


def test_empty_cloud_round_trip(tmp_path):
    path = tmp_path / "empty.pcd"
    write_pcd(path, PointCloud.from_xyz(np.empty((0, 3)), 0), True)
    assert len(read_pcd(path)) == 0


def test_read_handwritten_ascii(tmp_path):
    path = tmp_path / "hand.pcd"
    path.write_bytes(_header("ascii", 2) + b"1 2 3 10\n-1.5 0.25 8 11\n")
    cloud = read_pcd(path)
    np.testing.assert_array_equal(cloud.xyz, [[1, 2, 3], [-1.5, 0.25, 8]])
    assert cloud.frame_id.tolist() == [10, 11]


def test_missing_frame_id_defaults_to_zero(tmp_path):
    path = tmp_path / "xyz.pcd"
    path.write_bytes(_header("ascii", 1, fields="x y z", size="4 4 4", types="F F F") + b"1 2 3\n")
    assert read_pcd(path).frame_id.tolist() == [0]


def test_missing_coordinate_field_raises(tmp_path):
    path = tmp_path / "bad.pcd"
    path.write_bytes(_header("ascii", 1, fields="x y frame_id", size="4 4 4", types="F F U") + b"1 2 3\n")
    with pytest.raises(PcdError):
        read_pcd(path)


def test_short_ascii_raises(tmp_path):
    path = tmp_path / "short.pcd"
    path.write_bytes(_header("ascii", 3) + b"1 2 3 4\n")
    with pytest.raises(PcdError):
        read_pcd(path)


def test_truncated_binary_raises(tmp_path):
    path = tmp_path / "short.pcd"
    path.write_bytes(_header("binary", 2) + b"\x00" * 20)
    with pytest.raises(PcdError):
        read_pcd(path)


def test_unknown_data_kind_raises(tmp_path):
    path = tmp_path / "odd.pcd"
    path.write_bytes(_header("weird", 0))
    with pytest.raises(PcdError):
        read_pcd(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(PcdError):
        read_pcd(tmp_path / "nope.pcd")


def test_read_binary_compressed(tmp_path):
    xs = np.array([1.0, 2.0], dtype="<f4")
    ys = np.array([3.0, 4.0], dtype="<f4")
    zs = np.array([5.0, 6.0], dtype="<f4")
    ids = np.array([21, 22], dtype="<u4")
    raw = xs.tobytes() + ys.tobytes() + zs.tobytes() + ids.tobytes()
    packed = _lzf_literals(raw)
    path = tmp_path / "packed.pcd"
    path.write_bytes(
        _header("binary_compressed", 2) + struct.pack("<II", len(packed), len(raw)) + packed
    )
    cloud = read_pcd(path)
    np.testing.assert_array_equal(cloud.xyz, [[1, 3, 5], [2, 4, 6]])
    assert cloud.frame_id.tolist() == [21, 22]


def test_binary_compressed_wrong_size_raises(tmp_path):
    raw = b"\x00" * 32
    packed = _lzf_literals(raw)
    path = tmp_path / "packed.pcd"
    path.write_bytes(
        _header("binary_compressed", 2) + struct.pack("<II", len(packed), len(raw) + 4) + packed
    )
    with pytest.raises(PcdError):
        read_pcd(path)
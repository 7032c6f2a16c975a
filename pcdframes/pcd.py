"""PCD point clouds whose points carry x, y, z and a frame id."""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike
from typing import Union

import numpy as np

PathType = Union[str, "PathLike[str]"]

_KINDS = {"F": "f", "U": "u", "I": "i"}


class PcdError(ValueError):
    """Raised when a PCD file cannot be read or is malformed."""


def _as_xyz(xyz) -> np.ndarray:
    coords = np.asarray(xyz, dtype=np.float32)
    return coords.reshape(0, 3) if coords.size == 0 else coords


@dataclass(eq=False)
class PointCloud:
    """Points as an (N, 3) float32 array and a matching uint32 frame id array."""

    xyz: np.ndarray
    frame_id: np.ndarray

    def __post_init__(self) -> None:
        self.xyz = _as_xyz(self.xyz)
        if self.xyz.ndim != 2 or self.xyz.shape[1] != 3:
            raise ValueError(f"xyz must have shape (N, 3), got {self.xyz.shape}")
        frame_id = np.asarray(self.frame_id)
        if frame_id.shape != (len(self.xyz),):
            raise ValueError(f"frame_id must have shape ({len(self.xyz)},), got {frame_id.shape}")
        self.frame_id = frame_id.astype(np.uint32)

    def __len__(self) -> int:
        return len(self.xyz)

    def select(self, indices) -> "PointCloud":
        """Return the points at the given indices (or boolean mask), in that order."""
        idx = np.asarray(indices)
        if idx.dtype != np.bool_:
            idx = idx.astype(np.intp)
        return PointCloud(self.xyz[idx], self.frame_id[idx])

    def concat(self, other: "PointCloud") -> "PointCloud":
        """Return this cloud's points followed by the other cloud's points."""
        return PointCloud(
            np.concatenate([self.xyz, other.xyz]),
            np.concatenate([self.frame_id, other.frame_id]),
        )

    @classmethod
    def from_xyz(cls, xyz, frame_id=0) -> "PointCloud":
        """Build a cloud from coordinates and a frame id scalar or array."""
        coords = _as_xyz(xyz)
        ids = np.asarray(frame_id)
        if ids.ndim == 0:
            ids = np.full(len(coords), int(ids), dtype=np.uint32)
        return cls(coords, ids)


def _read_header(stream):
    entries: dict[str, list[str]] = {}
    for raw in iter(stream.readline, b""):
        line = raw.decode("ascii", "replace").strip()
        if not line or line.startswith("#"):
            continue
        key, *values = line.split()
        entries[key.upper()] = values
        if key.upper() == "DATA":
            break
    else:
        raise PcdError("PCD header has no DATA line")
    try:
        fields = entries["FIELDS"]
        sizes = [int(s) for s in entries["SIZE"]]
        types = [t.upper() for t in entries["TYPE"]]
        counts = [int(c) for c in entries.get("COUNT", ["1"] * len(fields))]
        if "POINTS" in entries:
            points = int(entries["POINTS"][0])
        else:
            points = int(entries["WIDTH"][0]) * int(entries.get("HEIGHT", ["1"])[0])
        data = entries["DATA"][0].lower()
    except (KeyError, IndexError, ValueError) as exc:
        raise PcdError("PCD header is incomplete or malformed") from exc
    if not len(fields) == len(sizes) == len(types) == len(counts):
        raise PcdError("PCD header FIELDS, SIZE, TYPE and COUNT differ in length")
    if data not in ("ascii", "binary"):
        raise PcdError(f"unsupported PCD data kind: {data!r}")
    if points < 0:
        raise PcdError("PCD header has a negative point count")

    names: list[str] = []
    layout = []
    for position, (name, size, kind, count) in enumerate(zip(fields, sizes, types, counts)):
        code = _KINDS.get(kind)
        if code is None or size not in (1, 2, 4, 8) or (code == "f" and size < 4) or count < 1:
            raise PcdError(f"unsupported PCD type {kind}{size} for field {name!r}")
        unique = f"{name}#{position}" if name in names else name
        names.append(unique)
        layout.append((unique, f"<{code}{size}", (count,) if count > 1 else ()))
    return names, counts, np.dtype(layout), points, data


def read_pcd(path: PathType) -> PointCloud:
    """Read a PCD file; its x, y and z fields are required, frame_id defaults to 0."""
    try:
        with open(path, "rb") as stream:
            names, counts, dtype, points, data = _read_header(stream)
            body = stream.read()
    except OSError as exc:
        raise PcdError(f"cannot read {path}: {exc}") from exc
    for axis in ("x", "y", "z"):
        if axis not in names:
            raise PcdError(f"PCD file has no {axis!r} field")
    if points == 0:
        return PointCloud.from_xyz(np.empty((0, 3)), 0)

    if data == "ascii":
        rows = [line.split() for line in body.decode("ascii", "replace").splitlines() if line.strip()]
        rows = rows[:points]
        if len(rows) < points:
            raise PcdError(f"PCD file has {len(rows)} points, header says {points}")
        try:
            table = np.array(rows, dtype=np.float64)
        except ValueError as exc:
            raise PcdError("PCD ASCII data has bad or ragged values") from exc
        starts = np.cumsum([0] + counts)
        if table.shape[1] != starts[-1]:
            raise PcdError("PCD ASCII rows do not match the header fields")
        columns = {name: table[:, start] for name, start in zip(names, starts)}
    else:
        needed = points * dtype.itemsize
        if len(body) < needed:
            raise PcdError(f"PCD binary data has {len(body)} bytes, needs {needed}")
        record = np.frombuffer(body, dtype=dtype, count=points)
        columns = {name: record[name].reshape(points, -1)[:, 0] for name in names}

    xyz = np.stack([columns[axis] for axis in ("x", "y", "z")], axis=1)
    with np.errstate(invalid="ignore"):
        frame_id = columns.get("frame_id", np.zeros(points)).astype(np.uint32)
    return PointCloud(xyz, frame_id)


def write_pcd(path: PathType, cloud: PointCloud, binary: bool = False) -> None:
    """Write the cloud as an unorganised PCD file, ASCII unless binary is set."""
    count = len(cloud)
    header = (
        "# .PCD v0.7 - Point Cloud Data file format\n"
        "VERSION 0.7\nFIELDS x y z frame_id\nSIZE 4 4 4 4\nTYPE F F F U\nCOUNT 1 1 1 1\n"
        f"WIDTH {count}\nHEIGHT 1\nVIEWPOINT 0 0 0 1 0 0 0\nPOINTS {count}\n"
        f"DATA {'binary' if binary else 'ascii'}\n"
    )
    with open(path, "wb") as stream:
        stream.write(header.encode("ascii"))
        if binary:
            record = np.empty(count, dtype=[("x", "<f4"), ("y", "<f4"), ("z", "<f4"), ("frame_id", "<u4")])
            record["x"], record["y"], record["z"] = cloud.xyz.T
            record["frame_id"] = cloud.frame_id
            stream.write(record.tobytes())
        else:
            stream.write(
                "".join(
                    f"{float(x):.9g} {float(y):.9g} {float(z):.9g} {int(fid)}\n"
                    for (x, y, z), fid in zip(cloud.xyz, cloud.frame_id)
                ).encode("ascii")
            )
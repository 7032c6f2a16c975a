"""Frame-by-frame PCD point cloud processing: voxel downsampling, ground removal, clustering and viewing."""

__version__ = "0.1.0"
[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pcdframes"
version = "0.1.0"
description = "Frame-by-frame processing of multi-frame PCD point clouds: voxel downsampling, ground removal and Euclidean clustering"
requires-python = ">=3.10"
keywords = ["point cloud", "pcd", "lidar", "voxel grid", "ransac", "clustering"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "scipy",
    "matplotlib",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
pcdframes = "pcdframes.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pcdframes"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

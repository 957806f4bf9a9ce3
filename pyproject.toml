[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gmmclust"
version = "0.1.0"
description = "K-means clustering and Gaussian mixture EM for dense numeric datasets"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "clustering",
    "k-means",
    "k-means++",
    "k-means||",
    "gaussian mixture",
    "expectation maximization",
    "em",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Information Analysis",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gmmclust"]

[tool.pytest.ini_options]
addopts = "-ra"

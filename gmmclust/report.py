"""Reports and binary files describing a K-means solution."""

from __future__ import annotations

import struct
import sys

import numpy as np

from .centroids import CentroidVector

_INT_MAX = 2**31 - 1


class KMeansReportWriter:
    """Writes centroids, class labels and quantized data for a fixed data set."""

    def __init__(self, data, nclusters, filestem=None):
        self.data = np.asarray(data, dtype=np.float64)
        if self.data.ndim != 2:
            raise ValueError("data must be a 2-D array")
        self.nclusters = int(nclusters)
        self.ncols = self.data.shape[1]
        self.cv = CentroidVector(self.nclusters, self.ncols)
        self.filestem = filestem

    def _matrix(self, centroids):
        arr = np.asarray(centroids, dtype=np.float64)
        if arr.size != self.nclusters * self.ncols:
            raise ValueError(
                f"centroid vector has {arr.size} values, expected {self.nclusters * self.ncols}"
            )
        return arr.reshape(self.nclusters, self.ncols)

    @staticmethod
    def _format_row(values):
        return "".join(f"{v:1.2f} " for v in values)

    def dump_clusters(self, centroids):
        """Print every centroid with the number of rows nearest to it; return the text."""
        mat = self._matrix(centroids)
        labels = self.cv.classify_dataset(mat, self.data)
        counts = np.bincount(labels, minlength=self.nclusters)
        lines = ["Cluster centroids:"]
        lines.extend(
            f"{self._format_row(row)}: {int(count)} objects" for row, count in zip(mat, counts)
        )
        text = "\n".join(lines) + "\n"
        sys.stdout.write(text)
        return text

    def dump_centroids(self, centroids):
        """Print the centroid coordinates, one centroid per line; return the text."""
        mat = self._matrix(centroids)
        text = "".join(self._format_row(row) + "\n" for row in mat)
        sys.stdout.write(text)
        return text

    def quantize_dataset(self, centroids, path):
        """Write every row replaced by its nearest centroid, as float32 values.

        The header is int32 -1, int32 column count and int64 row count.
        """
        mat = self._matrix(centroids)
        labels = self.cv.classify_dataset(mat, self.data)
        nrows = self.data.shape[0]
        with open(path, "wb") as stream:
            stream.write(struct.pack("<iiq", -1, self.ncols, nrows))
            stream.write(mat[labels].astype("<f4").tobytes())

    def write_centroids(self, centroids, path):
        """Write int32 cluster count, int32 column count and float64 coordinates."""
        mat = self._matrix(centroids)
        with open(path, "wb") as stream:
            stream.write(struct.pack("<ii", self.nclusters, self.ncols))
            stream.write(mat.astype("<f8").tobytes())

    def write_classes(self, centroids, path):
        """Write the 1-based nearest-centroid label of every row as int32 values.

        The header is the int32 row count, or int32 -1 followed by an int64
        row count when the count does not fit in 32 bits.
        """
        mat = self._matrix(centroids)
        labels = self.cv.classify_dataset(mat, self.data) + 1
        nrows = self.data.shape[0]
        with open(path, "wb") as stream:
            if nrows > _INT_MAX:
                stream.write(struct.pack("<iq", -1, nrows))
            else:
                stream.write(struct.pack("<i", nrows))
            stream.write(labels.astype("<i4").tobytes())

    def iteration_report(self, centroids, i):
        """Write ``<stem>_<i>.cls`` with the classes and ``<stem>_<i>.cnt`` with the centroids."""
        if self.filestem is None:
            raise ValueError("no file stem given for iteration reports")
        self.write_classes(centroids, f"{self.filestem}_{i}.cls")
        self.write_centroids(centroids, f"{self.filestem}_{i}.cnt")
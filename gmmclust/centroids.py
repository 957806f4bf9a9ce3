"""Operations on a set of cluster centroids stored as a (nclusters, ncols) matrix."""

from __future__ import annotations

import numpy as np


class CentroidVector:
    """Distance, classification and centre computations for a fixed-size centroid set.

    Centroids may be given either as a (nclusters, ncols) matrix or as a flat
    vector holding the coordinates of the first centroid, then the second, and so on.
    """

    def __init__(self, nclusters, ncols):
        if nclusters <= 0 or ncols <= 0:
            raise ValueError("nclusters and ncols must be positive")
        self.nclusters = int(nclusters)
        self.ncols = int(ncols)

    def _matrix(self, centroids):
        arr = np.asarray(centroids, dtype=np.float64)
        if arr.size != self.nclusters * self.ncols:
            raise ValueError(
                f"centroid vector has {arr.size} values, expected {self.nclusters * self.ncols}"
            )
        return arr.reshape(self.nclusters, self.ncols)

    def _data(self, data):
        arr = np.asarray(data, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] != self.ncols:
            raise ValueError(f"data must be a 2-D array with {self.ncols} columns")
        return arr

    def _row(self, row):
        arr = np.asarray(row, dtype=np.float64).reshape(-1)
        if arr.size != self.ncols:
            raise ValueError(f"row must have {self.ncols} values")
        return arr

    def _distances(self, centroids, data):
        mat = self._matrix(centroids)
        rows = self._data(data)
        diff = rows[:, None, :] - mat[None, :, :]
        return np.einsum("ijk,ijk->ij", diff, diff)

    def classify_dataset(self, centroids, data):
        """Return the index of the nearest centroid for every row (first one on ties)."""
        return np.argmin(self._distances(centroids, data), axis=1).astype(np.int64)

    def classify_with_distances(self, centroids, data):
        """Return (labels, squared distances to the nearest centroid) for every row."""
        dist = self._distances(centroids, data)
        labels = np.argmin(dist, axis=1).astype(np.int64)
        return labels, dist[np.arange(dist.shape[0]), labels]

    def find_objects_in_cluster(self, centroids, data, num):
        """Return the indices of rows whose nearest centroid is ``num``."""
        labels = self.classify_dataset(centroids, data)
        return np.flatnonzero(labels == num).astype(np.int64)

    def sort(self, centroids):
        """Return the centroids ordered lexicographically in descending order."""
        mat = self._matrix(centroids)
        order = np.lexsort(mat.T[::-1])[::-1]
        return mat[order].copy()

    def compute_mse(self, centroids, data, assignment=None):
        """Mean squared distance of rows to their nearest (or assigned) centroid."""
        if assignment is None:
            dist = self._distances(centroids, data)
            per_row = dist.min(axis=1)
        else:
            mat = self._matrix(centroids)
            rows = self._data(data)
            labels = np.asarray(assignment, dtype=np.int64)
            if labels.shape[0] != rows.shape[0]:
                raise ValueError("assignment length does not match the number of rows")
            diff = rows - mat[labels]
            per_row = np.einsum("ij,ij->i", diff, diff)
        if per_row.size == 0:
            raise ValueError("data set is empty")
        return float(per_row.sum() / per_row.size)

    def compute_centers(self, data, labels):
        """Return the mean of the rows assigned to each cluster (NaN for empty clusters)."""
        rows = self._data(data)
        labels = np.asarray(labels, dtype=np.int64)
        if labels.shape[0] != rows.shape[0]:
            raise ValueError("labels length does not match the number of rows")
        sums = np.zeros((self.nclusters, self.ncols), dtype=np.float64)
        np.add.at(sums, labels, rows)
        counts = np.bincount(labels, minlength=self.nclusters).astype(np.float64)
        with np.errstate(invalid="ignore", divide="ignore"):
            return sums / counts[:, None]

    def compute_cluster_sse(self, centroids, data):
        """Return the sum of squared distances of member rows for each cluster."""
        dist = self._distances(centroids, data)
        labels = np.argmin(dist, axis=1)
        mins = dist[np.arange(dist.shape[0]), labels]
        return np.bincount(labels, weights=mins, minlength=self.nclusters).astype(np.float64)

    def squared_distance(self, k, centroids, row):
        """Squared Euclidean distance between centroid ``k`` and ``row``."""
        diff = self._matrix(centroids)[k] - self._row(row)
        return float(diff @ diff)

    def partial_squared_distance(self, k, centroids, row, best):
        """Accumulate the squared distance, stopping once it reaches ``best``."""
        centroid = self._matrix(centroids)[k]
        values = self._row(row)
        ssq = 0.0
        for a, b in zip(centroid, values):
            if ssq >= best:
                break
            ssq += (a - b) * (a - b)
        return float(ssq)

    def centroid_squared_distance(self, centroids, c1, c2):
        """Squared distance between centroids ``c1`` and ``c2``."""
        mat = self._matrix(centroids)
        diff = mat[c1] - mat[c2]
        return float(diff @ diff)

    def squared_centroid_norm(self, centroids, c):
        """Squared Euclidean norm of centroid ``c``."""
        vec = self._matrix(centroids)[c]
        return float(vec @ vec)

    def squared_row_norm(self, row):
        """Squared Euclidean norm of ``row``."""
        vec = self._row(row)
        return float(vec @ vec)
"""K-means clustering and Gaussian mixture EM for dense numeric datasets held in NumPy arrays."""

__version__ = "0.1.0"
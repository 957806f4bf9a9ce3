# gmmclust

Clustering of dense numeric datasets held in NumPy arrays, with two
families of algorithms:

- **K-means** (`gmmclust.kmeans`), with several ways of choosing the
  starting centroids: Forgy, random partition, min-distance and from a file
  (`gmmclust.initializers`), k-means++ (`gmmclust.plusplus`) and
  k-means|| (`gmmclust.kmeans_oror`). Clusters that become empty during a
  run are refilled by a repair strategy (`gmmclust.repair`).
- **Gaussian mixture models trained with EM** (`gmmclust.em`,
  `gmmclust.cached_em`, `gmmclust.matrix_em`), started from a mixture built
  by one of the initializers in `gmmclust.em_init` (Jain, k-means,
  k-means|| or a saved mixture file).

The only dependency is NumPy. Random choices are drawn from a
`numpy.random.Generator` that you pass in (a fresh `default_rng()` is used
when you pass `None`), so runs are reproducible. Progress messages are sent
to the standard `logging` module under the `gmmclust.*` logger names.

## K-means

```python
import numpy as np

from gmmclust.initializers import ForgyInitializer
from gmmclust.kmeans import NaiveKMA
from gmmclust.repair import CentroidRandomRepair

rng = np.random.default_rng(42)
data = rng.normal(size=(1000, 2))

centroids = ForgyInitializer(data, 3, rng).init()   # (3, 2) float64 array
repair = CentroidRandomRepair(data, 3, rng)
kmeans = NaiveKMA(data, 3, repair, rng)

mse = kmeans.run_kmeans(centroids, 0, 1e-4, 30)     # updates centroids in place
```

`run_kmeans(centroids, verbosity, min_rel, max_iter)` stops when the mean
squared error stops falling, when the relative gain drops below `min_rel`
(if positive) or after `max_iter` iterations (if positive). `NaiveKMA` also
offers `run_kmeans_without_mse`, which stops when no row changes cluster,
and `run_kmeans_with_sr`, which adds fading random perturbations for a given
amount of CPU time.

Initializers: `ForgyInitializer`, `RandomInitializer`,
`MinDistInitializer(data, nclusters, trials, rng)`,
`FileInitializer(data, nclusters, path, rng)`,
`PlusPlusInitializer` (with optional per-row weights via `set_weights`) and
`KMeansOrOrInitializer(data, nclusters, oversample, rng)`. Each `init()`
returns a new `(nclusters, ncols)` array.

Repair strategies: `CentroidRandomRepair` (a random data row) and
`CentroidDeterministicRepair` (data rows in order, wrapping around).

`CentroidVector` (`gmmclust.centroids`) offers the lower-level operations:
classifying rows against a set of centroids, the mean squared error,
per-cluster squared errors, recomputing centres from a labelling, sorting
centroids and single distances and norms.

## Gaussian mixtures with EM

```python
from gmmclust.em_init import create_em_initializer
from gmmclust.matrix_em import create_em_algorithm
from gmmclust.mixture import GaussianMixture

mixture = GaussianMixture(3, 2)
create_em_initializer("kmeans", data, 3, rng).init(mixture)

em = create_em_algorithm("matrixem", "naive", 2, len(data), 3, None)
em.set_parameters(100, 1e-5, 1e5, 0.0)   # max sweeps, eps, abort threshold, regularization
loglik = em.train(data, mixture, 0, True)

labels = em.retrieve_classes()
```

Algorithm names accepted by `create_em_algorithm` are `None` or
`"matrixem"` (`MatrixEM`), `"simplematrixem"` (`SimpleMatrixEM`) and
`"cachedem"` (`CachedEM`); reducer names are `None` or `"naive"`, and
`"log2"`. The block parameter is either `None` (one block),
`"<dens>:<mstep>"` with explicit block counts, or `"automax:<L3 size in MiB>"`
to size blocks from the cache size (`gmmclust.blocks.parse_em_block_params`).

Initializer names accepted by `create_em_initializer` are `None` or
`"jain"`, `"kmeans"`, `"kmeansoror"`; any other name is taken as the path of
a saved mixture file.

Training raises `gmmclust.normal.EMError` when a covariance matrix stops
being positive definite or, with the condition check enabled, when its
condition number exceeds the abort threshold.

`GaussianMixture` can evaluate the mixture density, posteriors and the most
likely component of a row, split and merge components, and compute the
Bhattacharyya distance between components with `gmmclust.normal.BhattDist`.

## Binary files

- `GaussianMixture.save(path)` / `write(stream)`: int32 component count,
  int32 dimension, then for every component the covariance, the mean and the
  weight as float64, then a float64 zero. `GaussianMixture.read(stream)`
  reads it back.
- `KMeansReportWriter.write_centroids`: int32 cluster count, int32 column
  count, float64 coordinates.
- `KMeansReportWriter.write_classes` and `GaussianMixture.write_classes`:
  the int32 row count followed by 1-based int32 labels.
- `KMeansReportWriter.quantize_dataset`: int32 -1, int32 column count,
  int64 row count, then every row replaced by its nearest centroid as
  float32 values.

All values are little-endian. `KMeansReportWriter.dump_clusters` and
`dump_centroids` print a text summary and return it.

## Command-line options

`gmmclust.args.parse_args(argv)` parses the option set of an EM clustering
run (components, initializer, algorithm, iteration limits, thresholds,
regularization and output file names) into an `EMArgs` dataclass. It raises
`ValueError` for an unknown option or a bad value, and `UsageError` holding
the help text when no data file is named; `usage()` returns that text.

## What the package does not do

- It installs no command. The option parser is there, but nothing runs a
  clustering job from the command line.
- It does not read dataset files; data is passed in as NumPy arrays.
- All computation runs in a single process; block counts and reducer names
  only change how the sums are grouped.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.
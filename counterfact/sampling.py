"""
Seeded random draws and rank-and-cut partitioning of a population.

Every function takes an explicit ``rng``: either a
``numpy.random.Generator`` or an integer seed. There is no module-level
random state, so two calls with the same seed always agree.
"""
from __future__ import annotations

import logging
from typing import Mapping, Sequence, Union

import numpy as np

from ._exceptions import SampleError

logger = logging.getLogger(__name__)

UNSELECTED = "unselected"

RandomState = Union[np.random.Generator, int]


def as_generator(rng: RandomState) -> np.random.Generator:
    """Return ``rng`` unchanged if it is a Generator, else seed a new one from it."""
    if isinstance(rng, np.random.Generator):
        return rng
    if rng is None:
        raise SampleError("A seed or numpy Generator is required; implicit global randomness is not supported.")
    return np.random.default_rng(rng)


def draw_normal(n: int, mean: float, sd: float, rng: RandomState) -> np.ndarray:
    """``n`` i.i.d. draws from Normal(mean, sd)."""
    if n < 0:
        raise SampleError(f"Cannot draw a negative number of values ({n}).")
    if sd < 0:
        raise SampleError(f"Standard deviation must be non-negative, got {sd}.")
    return as_generator(rng).normal(mean, sd, size=n)


def random_keys(n: int, rng: RandomState) -> np.ndarray:
    """``n`` i.i.d. Uniform(0, 1) ranking keys."""
    if n < 0:
        raise SampleError(f"Cannot draw a negative number of keys ({n}).")
    return as_generator(rng).uniform(size=n)


class Partition:
    """
    A split of ``population_size`` individuals into disjoint named groups.

    Obtain via ``partition()``. Individuals are referred to by their
    position (0 .. population_size - 1).
    """

    def __init__(self, labels: np.ndarray, names: list[str]) -> None:
        self._labels = labels
        self._names = names

    @property
    def labels(self) -> np.ndarray:
        """Group label for every individual, ``"unselected"`` for the remainder."""
        return self._labels.copy()

    @property
    def names(self) -> list[str]:
        """Group names in the order they were filled."""
        return list(self._names)

    @property
    def population_size(self) -> int:
        return int(self._labels.size)

    def mask(self, name: str) -> np.ndarray:
        """Boolean membership mask for group ``name``."""
        if name != UNSELECTED and name not in self._names:
            raise KeyError(f"Unknown group '{name}'. Known groups: {self._names}")
        return self._labels == name

    def group(self, name: str) -> np.ndarray:
        """Sorted positions of the members of group ``name``."""
        return np.flatnonzero(self.mask(name))

    @property
    def groups(self) -> dict[str, np.ndarray]:
        """Mapping of group name to member positions (excluding the remainder)."""
        return {name: self.group(name) for name in self._names}

    @property
    def unselected(self) -> np.ndarray:
        """Positions of individuals assigned to no group."""
        return self.group(UNSELECTED)

    @property
    def sizes(self) -> dict[str, int]:
        return {name: int(self.mask(name).sum()) for name in self._names}

    def __repr__(self) -> str:
        parts = ", ".join(f"{k}={v}" for k, v in self.sizes.items())
        return f"Partition(N={self.population_size}, {parts})"


def _named_sizes(sizes: Mapping[str, int] | Sequence[int]) -> list[tuple[str, int]]:
    if isinstance(sizes, Mapping):
        items = [(str(name), size) for name, size in sizes.items()]
    else:
        items = [(f"group {i}", size) for i, size in enumerate(sizes, start=1)]

    if not items:
        raise SampleError("At least one group size is required.")
    for name, size in items:
        if name == UNSELECTED:
            raise SampleError(f"'{UNSELECTED}' is reserved for the remainder and cannot name a group.")
        if int(size) != size or size < 0:
            raise SampleError(f"Group '{name}' has an invalid size: {size!r}.")
    return [(name, int(size)) for name, size in items]


def partition(
    population_size: int,
    sizes: Mapping[str, int] | Sequence[int],
    rng: RandomState,
) -> Partition:
    """
    Randomly assign individuals to disjoint groups of fixed sizes.

    Each individual gets an independent uniform key. Individuals are sorted
    by key ascending; the first ``n1`` form group 1, the next ``n2`` group 2,
    and so on. Everyone left over is labelled ``"unselected"``. This is
    equivalent in distribution to simple random sampling without
    replacement.

    Parameters
    ----------
    population_size : int
        Number of individuals N.
    sizes : mapping or sequence of int
        Group sizes, either as ``{"treatment survey": 200, ...}`` or as a
        plain sequence, in which case groups are named ``"group 1"``,
        ``"group 2"``, ...
    rng : numpy.random.Generator or int
        Source of the ranking keys.

    Raises
    ------
    SampleError
        If the population is empty, a size is negative, or the sizes sum to
        more than the population.
    """
    if int(population_size) != population_size or population_size <= 0:
        raise SampleError(f"Population size must be a positive integer, got {population_size!r}.")
    population_size = int(population_size)

    named = _named_sizes(sizes)
    total = sum(size for _, size in named)
    if total > population_size:
        raise SampleError(
            f"Requested groups total {total} individuals but the population has only {population_size}."
        )

    keys = random_keys(population_size, rng)
    order = np.argsort(keys, kind="stable")

    labels = np.full(population_size, UNSELECTED, dtype=object)
    start = 0
    for name, size in named:
        labels[order[start:start + size]] = name
        start += size

    result = Partition(labels, [name for name, _ in named])
    logger.debug("Partitioned %d individuals: %s", population_size, result.sizes)
    return result

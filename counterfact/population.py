from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

import numpy as np
import pandas as pd

from ._exceptions import SampleError
from .sampling import Partition, RandomState, as_generator, draw_normal
from .stats import clamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Population:
    """
    A synthetic population with both potential outcomes known.

    ``y0`` is the outcome each individual would have without treatment and
    ``y1`` the outcome under treatment. In real data only one of them is
    ever observed; here both are kept so estimates can be compared against
    the ground truth.

    Attributes are never mutated. ``with_treatment()``, ``with_selection()``
    and ``with_covariate()`` return a new ``Population`` sharing the
    untouched arrays.
    """

    y0: np.ndarray
    y1: np.ndarray
    treatment: np.ndarray | None = None
    selection: np.ndarray | None = None
    covariates: dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # accept plain sequences; frozen, so assign through object.__setattr__
        object.__setattr__(self, "y0", np.asarray(self.y0, dtype=float))
        object.__setattr__(self, "y1", np.asarray(self.y1, dtype=float))
        if self.treatment is not None:
            object.__setattr__(self, "treatment", np.asarray(self.treatment))
        if self.selection is not None:
            object.__setattr__(self, "selection", np.asarray(self.selection, dtype=object))
        object.__setattr__(
            self, "covariates", {k: np.asarray(v, dtype=float) for k, v in self.covariates.items()}
        )

        if self.y0.shape != self.y1.shape or self.y0.ndim != 1:
            raise SampleError("y0 and y1 must be one-dimensional arrays of equal length.")
        n = self.y0.size
        for label, values in [("treatment", self.treatment), ("selection", self.selection)]:
            if values is not None and len(values) != n:
                raise SampleError(f"{label} has {len(values)} entries but the population has {n}.")
        for name, values in self.covariates.items():
            if len(values) != n:
                raise SampleError(f"Covariate '{name}' has {len(values)} entries but the population has {n}.")

    # ── Size and identity ─────────────────────────────────────────────────────

    @property
    def size(self) -> int:
        return int(self.y0.size)

    @property
    def ids(self) -> np.ndarray:
        """Unique identifier per individual (1-based, in generation order)."""
        return np.arange(1, self.size + 1)

    # ── Ground truth ──────────────────────────────────────────────────────────

    @property
    def treatment_effect(self) -> np.ndarray:
        """Individual treatment effects ``y1 - y0``."""
        return self.y1 - self.y0

    @property
    def ate(self) -> float:
        """True average treatment effect over the whole population."""
        return float(np.mean(self.treatment_effect))

    @property
    def att(self) -> float:
        """True average treatment effect on the treated."""
        d = self._require_treatment()
        if not d.any():
            raise SampleError("No treated individuals: ATT is undefined.")
        return float(np.mean(self.treatment_effect[d]))

    @property
    def atu(self) -> float:
        """True average treatment effect on the untreated."""
        d = self._require_treatment()
        if d.all():
            raise SampleError("No untreated individuals: ATU is undefined.")
        return float(np.mean(self.treatment_effect[~d]))

    # ── Observation ───────────────────────────────────────────────────────────

    @property
    def observed(self) -> np.ndarray:
        """Observed outcome via the switching equation ``y = d*y1 + (1-d)*y0``."""
        d = self._require_treatment()
        return np.where(d, self.y1, self.y0)

    def _require_treatment(self) -> np.ndarray:
        if self.treatment is None:
            raise SampleError("This population has no treatment assignment; call with_treatment() first.")
        return self.treatment.astype(bool)

    # ── Copy-on-transform ─────────────────────────────────────────────────────

    def with_treatment(self, treatment) -> Population:
        """Return a copy with the binary treatment indicator set."""
        d = np.asarray(treatment)
        if d.size and not np.isin(d, (0, 1)).all():
            raise SampleError("Treatment must be binary (0/1 or False/True).")
        return replace(self, treatment=d.astype(int))

    def with_selection(self, selection: Partition | np.ndarray) -> Population:
        """Return a copy labelled with a sample/selection partition."""
        labels = selection.labels if isinstance(selection, Partition) else np.asarray(selection, dtype=object)
        return replace(self, selection=labels)

    def with_covariate(self, name: str, values) -> Population:
        """Return a copy with covariate ``name`` added (or replaced)."""
        covariates = dict(self.covariates)
        covariates[name] = np.asarray(values, dtype=float)
        return replace(self, covariates=covariates)

    def subset(self, index) -> Population:
        """Individuals selected by a boolean mask or an array of positions."""
        idx = np.asarray(index)
        return Population(
            y0=self.y0[idx],
            y1=self.y1[idx],
            treatment=None if self.treatment is None else self.treatment[idx],
            selection=None if self.selection is None else self.selection[idx],
            covariates={k: v[idx] for k, v in self.covariates.items()},
        )

    def select(self, label: str) -> Population:
        """Individuals whose selection label equals ``label``."""
        if self.selection is None:
            raise SampleError("This population has no selection labels; call with_selection() first.")
        return self.subset(self.selection == label)

    def to_frame(self) -> pd.DataFrame:
        """
        Export as a dataframe with columns ``id, y0, y1, delta`` followed by
        ``d, y`` (if treated), ``s`` (if selected) and one column per covariate.
        """
        columns = {"id": self.ids, "y0": self.y0, "y1": self.y1, "delta": self.treatment_effect}
        if self.treatment is not None:
            columns["d"] = self.treatment
            columns["y"] = self.observed
        if self.selection is not None:
            columns["s"] = self.selection
        columns.update(self.covariates)
        return pd.DataFrame(columns)

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        extras = []
        if self.treatment is not None:
            extras.append(f"treated={int(self.treatment.sum())}")
        if self.selection is not None:
            extras.append("selection")
        extras += sorted(self.covariates)
        tail = f", {', '.join(extras)}" if extras else ""
        return f"Population(N={self.size}, ATE={self.ate:.4f}{tail})"


class PopulationBuilder:
    """
    Builds a ``Population`` step by step::

        pop = (
            PopulationBuilder(100_000, rng=1)
            .baseline(mean=100, sd=25, bounds=(0, 200))
            .effect(mean=5, sd=2)
            .build()
        )

    Covariates are drawn first (in declaration order), then the baseline
    noise, then the individual effects, so a given seed always yields the
    same population.
    """

    def __init__(self, size: int, rng: RandomState) -> None:
        if int(size) != size or size <= 0:
            raise SampleError(f"Population size must be a positive integer, got {size!r}.")
        self._size = int(size)
        self._rng = as_generator(rng)
        self._baseline = (0.0, 1.0)
        self._bounds: tuple[float, float] | None = None
        self._effect = (0.0, 0.0)
        self._covariates: dict[str, tuple[float, float]] = {}
        self._dependences: list[tuple[str, float]] = []

    def baseline(self, mean: float, sd: float, bounds: tuple[float, float] | None = None) -> PopulationBuilder:
        """Draw ``y0`` noise from Normal(mean, sd), clamped into ``bounds`` if given."""
        if sd < 0:
            raise SampleError(f"Standard deviation must be non-negative, got {sd}.")
        if bounds is not None and bounds[0] > bounds[1]:
            raise ValueError(f"Lower bound {bounds[0]} is greater than upper bound {bounds[1]}.")
        self._baseline = (mean, sd)
        self._bounds = bounds
        return self

    def effect(self, mean: float, sd: float = 0.0) -> PopulationBuilder:
        """Individual treatment effects ``y1 - y0`` drawn from Normal(mean, sd)."""
        if sd < 0:
            raise SampleError(f"Standard deviation must be non-negative, got {sd}.")
        self._effect = (mean, sd)
        return self

    def covariate(self, name: str, mean: float = 0.0, sd: float = 1.0) -> PopulationBuilder:
        """Add a Normal(mean, sd) covariate to the population."""
        if name in self._covariates:
            raise SampleError(f"Covariate '{name}' already declared.")
        self._covariates[name] = (mean, sd)
        return self

    def depends_on(self, covariate: str, coef: float) -> PopulationBuilder:
        """Shift both potential outcomes by ``coef * covariate``."""
        if covariate not in self._covariates:
            raise SampleError(f"Unknown covariate '{covariate}'. Declare it with covariate() first.")
        self._dependences.append((covariate, coef))
        return self

    def build(self) -> Population:
        n, rng = self._size, self._rng

        covariates = {
            name: draw_normal(n, mean, sd, rng) for name, (mean, sd) in self._covariates.items()
        }
        y0 = draw_normal(n, *self._baseline, rng)
        for covariate, coef in self._dependences:
            y0 = y0 + coef * covariates[covariate]
        if self._bounds is not None:
            y0 = clamp(y0, *self._bounds)
        y1 = y0 + draw_normal(n, *self._effect, rng)

        population = Population(y0=y0, y1=y1, covariates=covariates)
        logger.debug("Built population of %d with true ATE %.4f", n, population.ate)
        return population

"""
The potential-outcomes exercises, one function each.

Every exercise draws a fresh population from ``config.seed``, so each can be
re-run on its own and gives the same answer every time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from ._exceptions import SampleError
from .dag import DAG
from .decomposition import SDODecomposition, decompose
from .estimators.difference import DifferenceInMeans, DifferenceResult
from .estimators.regression import DesignMatrix, LeastSquares, RegressionResult
from .population import Population, PopulationBuilder
from .sampling import partition

logger = logging.getLogger(__name__)

TREATMENT_SURVEY = "treatment survey"
CONTROL_SURVEY = "control survey"
IN_SAMPLE = "in sample"

CAUSAL_GRAPHS: dict[str, tuple[tuple[str, str], ...]] = {
    "randomized": (("X", "Y"),),
    "confounded": (("C", "X"), ("C", "Y"), ("X", "Y")),
    "unobserved": (("C", "X"), ("C", "Y"), ("U", "X"), ("U", "Y"), ("X", "Y")),
}


def causal_graph(name: str) -> DAG:
    """A fresh ``DAG`` for one of the fixed graphs in ``CAUSAL_GRAPHS``."""
    if name not in CAUSAL_GRAPHS:
        raise KeyError(f"Unknown graph '{name}'. Known graphs: {sorted(CAUSAL_GRAPHS)}")
    return DAG.from_edges(CAUSAL_GRAPHS[name])


@dataclass(frozen=True)
class SimulationConfig:
    """
    Parameters shared by all exercises.

    The potential outcomes follow ``Y0 ~ Normal(y0_mean, y0_sd)`` clamped
    into ``bounds`` and ``Y1 = Y0 + Normal(effect_mean, effect_sd)``. The
    confounded exercises replace the baseline with ``Normal(0, noise_sd)``
    plus ``confounder_effect`` times each confounder, and assign treatment
    when ``confounding * confounder + Normal(0, 1) > 0``.
    """

    seed: int = 1
    population_size: int = 10_000
    sample_size: int = 1_000
    y0_mean: float = 100.0
    y0_sd: float = 25.0
    bounds: tuple[float, float] = (0.0, 200.0)
    effect_mean: float = 5.0
    effect_sd: float = 2.0
    confounding: float = 0.8
    confounder_effect: float = 3.0
    noise_sd: float = 1.0

    def __post_init__(self) -> None:
        if self.seed < 0:
            raise SampleError(f"Seed must be a non-negative integer, got {self.seed}.")
        if self.population_size <= 0:
            raise SampleError(f"Population size must be positive, got {self.population_size}.")
        if self.sample_size <= 0:
            raise SampleError(f"Sample size must be positive, got {self.sample_size}.")
        if 2 * self.sample_size > self.population_size:
            raise SampleError(
                f"Two disjoint samples of {self.sample_size} do not fit in a population "
                f"of {self.population_size}."
            )
        lo, hi = self.bounds
        if lo > hi:
            raise ValueError(f"Lower bound {lo} is greater than upper bound {hi}.")
        for label, sd in [("y0_sd", self.y0_sd), ("effect_sd", self.effect_sd), ("noise_sd", self.noise_sd)]:
            if sd < 0:
                raise ValueError(f"{label} must be non-negative, got {sd}.")

    def potential_outcomes(self, rng) -> Population:
        """The unconfounded population used by the sampling exercises."""
        return (
            PopulationBuilder(self.population_size, rng)
            .baseline(self.y0_mean, self.y0_sd, bounds=self.bounds)
            .effect(self.effect_mean, self.effect_sd)
            .build()
        )


def _stacked_regression(treated: np.ndarray, control: np.ndarray) -> RegressionResult:
    # One row per observed outcome: d = 1 for the treated sample, 0 for control.
    y = np.concatenate([treated, control])
    d = np.concatenate([np.ones(treated.size), np.zeros(control.size)])
    return LeastSquares(DesignMatrix.for_treatment(d)).fit(y)


def _rule(title: str) -> list[str]:
    return ["", title, "═" * 50]


# ── Ground truth ──────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class GroundTruth:
    population: Population
    difference: DifferenceResult
    regression: RegressionResult

    @property
    def true_ate(self) -> float:
        return self.population.ate

    def summary(self) -> str:
        lines = _rule("Exercise: ground truth over the full population")
        lines.append(f"  True ATE             : {self.true_ate:>10.4f}")
        lines.append(f"  OLS coefficient on d : {self.regression.effect:>10.4f}")
        return "\n".join(lines) + self.difference.summary()


def ground_truth(config: SimulationConfig) -> GroundTruth:
    """
    Compare every individual's treated and untreated outcome.

    Both potential outcomes are known for everyone, so the difference of
    means over the whole population is the true ATE. The OLS coefficient on
    a treatment dummy over the stacked outcomes is the same number.
    """
    pop = config.potential_outcomes(np.random.default_rng(config.seed))
    difference = DifferenceInMeans().fit(pop.y1, pop.y0)
    regression = _stacked_regression(pop.y1, pop.y0)
    logger.debug("Ground truth ATE %.4f, estimate %.4f", pop.ate, difference.effect)
    return GroundTruth(pop, difference, regression)


# ── One random sample ─────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class SingleSample:
    population: Population
    difference: DifferenceResult

    @property
    def sample(self) -> Population:
        return self.population.select(IN_SAMPLE)

    @property
    def sample_ate(self) -> float:
        """True ATE within the sample (both potential outcomes known)."""
        return self.sample.ate

    def summary(self) -> str:
        lines = _rule("Exercise: ATE in one random sample (S = 1)")
        lines.append(f"  Population ATE       : {self.population.ate:>10.4f}")
        lines.append(f"  Sample ATE           : {self.sample_ate:>10.4f}")
        return "\n".join(lines) + self.difference.summary()


def single_sample(config: SimulationConfig) -> SingleSample:
    """Draw one random sample and estimate ``E[Y1|S=1] - E[Y0|S=1]``."""
    rng = np.random.default_rng(config.seed)
    pop = config.potential_outcomes(rng)
    pop = pop.with_selection(partition(pop.size, {IN_SAMPLE: config.sample_size}, rng))
    sample = pop.select(IN_SAMPLE)
    difference = DifferenceInMeans().fit(sample.y1, sample.y0)
    return SingleSample(pop, difference)


# ── Two disjoint samples ──────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class TwoSample:
    population: Population
    difference: DifferenceResult
    regression: RegressionResult

    def summary(self) -> str:
        lines = _rule("Exercise: treatment survey (S = 1) vs control survey (S = 2)")
        lines.append("  Estimate E[Y1 | S=1] - E[Y0 | S=2]")
        lines.append(f"  Population ATE       : {self.population.ate:>10.4f}")
        lines.append(f"  OLS coefficient on d : {self.regression.effect:>10.4f}")
        return "\n".join(lines) + self.difference.summary()


def two_sample(config: SimulationConfig) -> TwoSample:
    """
    Observe ``Y1`` in one random survey and ``Y0`` in a second, disjoint one.

    Each individual contributes at most one potential outcome, as in a
    randomized experiment, yet the difference of means is unbiased for the
    population ATE.
    """
    rng = np.random.default_rng(config.seed)
    pop = config.potential_outcomes(rng)
    surveys = partition(
        pop.size, {TREATMENT_SURVEY: config.sample_size, CONTROL_SURVEY: config.sample_size}, rng
    )
    pop = pop.with_selection(surveys)
    treated = pop.select(TREATMENT_SURVEY).y1
    control = pop.select(CONTROL_SURVEY).y0
    return TwoSample(
        pop,
        DifferenceInMeans().fit(treated, control),
        _stacked_regression(treated, control),
    )


# ── Confounding ───────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class Confounded:
    population: Population
    naive: RegressionResult
    adjusted: RegressionResult
    decomposition: SDODecomposition
    oracle: RegressionResult | None = field(default=None)

    @property
    def true_ate(self) -> float:
        return self.population.ate

    @property
    def bias(self) -> float:
        """Naive estimate minus the true ATE."""
        return self.naive.effect - self.true_ate

    def summary(self) -> str:
        lines = _rule("Exercise: confounded treatment assignment")
        lines += [
            f"  True ATE             : {self.true_ate:>10.4f}",
            f"  Naive OLS (d only)   : {self.naive.effect:>10.4f}  (bias {self.bias:+.4f})",
            f"  Adjusted OLS         : {self.adjusted.effect:>10.4f}  "
            f"(controls: {', '.join(self.adjusted.regressors[2:])})",
        ]
        if self.oracle is not None:
            lines.append(f"  Oracle OLS           : {self.oracle.effect:>10.4f}  "
                         f"(controls: {', '.join(self.oracle.regressors[2:])})")
        return "\n".join(lines) + "\n" + self.decomposition.summary()


def _confounded_population(config: SimulationConfig, confounders: list[str]) -> Population:
    rng = np.random.default_rng(config.seed)
    builder = PopulationBuilder(config.population_size, rng)
    for name in confounders:
        builder.covariate(name).depends_on(name, config.confounder_effect)
    pop = builder.baseline(0.0, config.noise_sd).effect(config.effect_mean, config.effect_sd).build()

    index = sum(config.confounding * pop.covariates[name] for name in confounders)
    d = (index + rng.normal(size=pop.size) > 0).astype(int)
    return pop.with_treatment(d)


def confounded(config: SimulationConfig) -> Confounded:
    """
    A confounder ``c`` raises both the chance of treatment and the outcome.

    Regressing the observed outcome on treatment alone mixes the treatment
    effect with the effect of ``c``; adding ``c`` to the design removes it.
    """
    pop = _confounded_population(config, ["c"])
    y, c = pop.observed, pop.covariates["c"]
    naive = LeastSquares(DesignMatrix.for_treatment(pop.treatment)).fit(y)
    adjusted = LeastSquares(DesignMatrix.for_treatment(pop.treatment, covariates={"c": c})).fit(y)
    logger.debug("Confounded: naive %.4f, adjusted %.4f, truth %.4f", naive.effect, adjusted.effect, pop.ate)
    return Confounded(pop, naive, adjusted, decompose(pop))


def unobserved_confounder(config: SimulationConfig) -> Confounded:
    """
    Two confounders, ``c`` observed and ``u`` not.

    Adjusting for ``c`` alone leaves the bias from ``u`` in place. The
    ``oracle`` fit, which is handed ``u`` as well, shows what the analyst
    could recover if ``u`` were measured.
    """
    pop = _confounded_population(config, ["c", "u"])
    y, d = pop.observed, pop.treatment
    c, u = pop.covariates["c"], pop.covariates["u"]
    naive = LeastSquares(DesignMatrix.for_treatment(d)).fit(y)
    adjusted = LeastSquares(DesignMatrix.for_treatment(d, covariates={"c": c})).fit(y)
    oracle = LeastSquares(DesignMatrix.for_treatment(d, covariates={"c": c, "u": u})).fit(y)
    return Confounded(pop, naive, adjusted, decompose(pop), oracle=oracle)


EXERCISES = {
    "ground_truth": ground_truth,
    "single_sample": single_sample,
    "two_sample": two_sample,
    "confounded": confounded,
    "unobserved_confounder": unobserved_confounder,
}


def run_all(config: SimulationConfig) -> dict:
    """Run every exercise in order; returns name → result."""
    results = {}
    for name, exercise in EXERCISES.items():
        logger.debug("Running %s", name)
        results[name] = exercise(config)
    return results

from __future__ import annotations

import logging

import numpy as np
from statsmodels.stats.weightstats import CompareMeans, DescrStatsW

from .._exceptions import EstimationError
from ..refutations._check import Assumption

logger = logging.getLogger(__name__)

CI_METHODS = ("t", "normal")

DIFFERENCE_ASSUMPTIONS: list[Assumption] = [
    Assumption("Random assignment: treated and control samples share the same potential outcome distributions", testable=False),
    Assumption("Stable Unit Treatment Value Assumption (SUTVA)", testable=False),
    Assumption("Equal outcome variance in both groups (pooled t-test)", testable=True),
]


class DifferenceResult:
    """
    The result of a difference-of-means ATE estimate.

    ``effect`` is ``mean(treated) - mean(control)``. Inference uses the
    independent two-sample Student t-test with pooled variance, so the
    degrees of freedom are ``n_treated + n_control - 2`` and the two
    samples may have different sizes.
    """

    def __init__(self, compare: CompareMeans, ci: str, alpha: float) -> None:
        self._compare = compare
        self._ci = ci
        self._alpha = alpha
        self._tstat, self._pvalue, self._df = compare.ttest_ind(usevar="pooled")

    @property
    def effect(self) -> float:
        """ATE estimate: difference in sample means."""
        return float(self._compare.d1.mean - self._compare.d2.mean)

    @property
    def std_err(self) -> float:
        """Pooled-variance standard error of the difference."""
        return float(self._compare.std_meandiff_pooledvar)

    @property
    def conf_int(self) -> tuple[float, float]:
        """
        Confidence interval at level ``1 - alpha``.

        With ``ci="t"`` the t quantile at ``df`` is used; with
        ``ci="normal"`` the normal quantile (about 1.96 at 95%). The normal
        interval is slightly narrower in small samples.
        """
        if self._ci == "t":
            lo, hi = self._compare.tconfint_diff(alpha=self._alpha, usevar="pooled")
        else:
            lo, hi = self._compare.zconfint_diff(alpha=self._alpha, usevar="pooled")
        return (float(lo), float(hi))

    @property
    def tstat(self) -> float:
        return float(self._tstat)

    @property
    def pvalue(self) -> float:
        """Two-sided p-value for ``H0: ATE = 0``."""
        return float(self._pvalue)

    @property
    def df(self) -> float:
        """Degrees of freedom of the pooled t-test."""
        return float(self._df)

    @property
    def n_treated(self) -> int:
        return int(self._compare.d1.nobs)

    @property
    def n_control(self) -> int:
        return int(self._compare.d2.nobs)

    @property
    def mean_treated(self) -> float:
        return float(self._compare.d1.mean)

    @property
    def mean_control(self) -> float:
        return float(self._compare.d2.mean)

    @property
    def statsmodels_result(self) -> CompareMeans:
        """The underlying statsmodels ``CompareMeans`` object."""
        return self._compare

    @property
    def assumptions(self) -> list[Assumption]:
        return list(DIFFERENCE_ASSUMPTIONS)

    def summary(self) -> str:
        lo, hi = self.conf_int
        level = f"{100 * (1 - self._alpha):g}%"
        lines = [
            "",
            "Difference in Means",
            "  Estimand: ATE (average treatment effect)",
            "─" * 50,
            f"  Mean treated         : {self.mean_treated:>10.4f}  (n = {self.n_treated})",
            f"  Mean control         : {self.mean_control:>10.4f}  (n = {self.n_control})",
            f"  ATE estimate         : {self.effect:>10.4f}",
            "",
            f"  Std. error           : {self.std_err:>10.4f}",
            f"  {level + ' CI':<21}: [{lo:.4f}, {hi:.4f}]  ({self._ci})",
            f"  t (df = {self.df:g})".ljust(23) + f": {self.tstat:>10.4f}",
            f"  p-value              : {self.pvalue:>10.4f}",
            "",
            "  Assumptions",
            "  " + "┄" * 48,
        ]
        for a in DIFFERENCE_ASSUMPTIONS:
            lines.append(f"  {a.fmt_tag()}  {a.name}")
        lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return self.summary()


class DifferenceInMeans:
    """
    Difference-of-means estimator of the average treatment effect.

    Compares an outcome sample from treated units with one from control
    units. Valid as an ATE estimate when treatment is randomly assigned
    (or, in the synthetic setting, when both samples are random draws of
    the respective potential outcomes).

    Example::

        result = DifferenceInMeans().fit(y[d == 1], y[d == 0])
        print(result.summary())

    Parameters
    ----------
    ci : {"t", "normal"}
        How the confidence interval is computed: t quantile at the pooled
        degrees of freedom (default) or the normal quantile.
    alpha : float
        One minus the confidence level.
    """

    def __init__(self, ci: str = "t", alpha: float = 0.05) -> None:
        if ci not in CI_METHODS:
            raise ValueError(f"Unknown confidence interval method '{ci}'. Choose from {CI_METHODS}.")
        if not 0 < alpha < 1:
            raise ValueError(f"alpha must be strictly between 0 and 1, got {alpha}.")
        self._ci = ci
        self._alpha = alpha

    def fit(self, treated, control) -> DifferenceResult:
        """
        Estimate ``mean(treated) - mean(control)`` with a pooled t-test.

        Raises
        ------
        EstimationError
            If either sample is empty, the two samples together have fewer
            than three observations, or both samples are constant so the
            pooled variance is zero.
        """
        x1 = np.asarray(treated, dtype=float).ravel()
        x0 = np.asarray(control, dtype=float).ravel()

        for label, x in [("Treated", x1), ("Control", x0)]:
            if x.size == 0:
                raise EstimationError(f"{label} sample is empty.")
            if not np.isfinite(x).all():
                raise EstimationError(f"{label} sample contains NaN or infinite values.")
        if x1.size + x0.size <= 2:
            raise EstimationError(
                "A pooled t-test needs at least three observations in total "
                f"(got {x1.size} treated and {x0.size} control)."
            )

        compare = CompareMeans(DescrStatsW(x1), DescrStatsW(x0))
        if compare.std_meandiff_pooledvar == 0:
            raise EstimationError(
                "Both samples are constant: the pooled variance is zero and the "
                "difference has no sampling distribution."
            )

        result = DifferenceResult(compare, self._ci, self._alpha)
        logger.debug(
            "Difference in means: %.4f (se %.4f, n = %d / %d)",
            result.effect, result.std_err, x1.size, x0.size,
        )
        return result

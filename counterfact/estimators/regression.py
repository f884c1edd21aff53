from __future__ import annotations

import logging
from typing import Mapping

import numpy as np
import pandas as pd
import statsmodels.api as sm

from .._exceptions import EstimationError, SingularDesignError
from ..refutations._check import Assumption
from ..sampling import RandomState

logger = logging.getLogger(__name__)

INTERCEPT = "const"

REGRESSION_ASSUMPTIONS: list[Assumption] = [
    Assumption("Conditional independence: treatment is as good as random given the regressors", testable=False),
    Assumption("No unobserved confounders outside the design matrix", testable=False),
    Assumption("Linearity of the outcome in treatment and covariates", testable=True),
    Assumption("Stable Unit Treatment Value Assumption (SUTVA)", testable=False),
]


class DesignMatrix:
    """
    An ordered set of named regressor columns.

    Build it explicitly instead of writing a formula::

        X = DesignMatrix(n).intercept().add("d", d).add("c", c)

    or in one step::

        X = DesignMatrix.for_treatment(d, covariates={"c": c})

    ``add()`` and ``intercept()`` return a new matrix, so a design can be
    widened with extra covariates without touching the original.
    """

    def __init__(self, nobs: int, columns: list[tuple[str, np.ndarray]] | None = None) -> None:
        if nobs <= 0:
            raise EstimationError(f"A design matrix needs at least one observation, got {nobs}.")
        self._nobs = int(nobs)
        self._columns = list(columns or [])

    @classmethod
    def for_treatment(
        cls,
        treatment,
        covariates: Mapping[str, np.ndarray] | None = None,
        name: str = "d",
        intercept: bool = True,
    ) -> DesignMatrix:
        """Intercept (optional), then the treatment column, then covariates in the given order."""
        d = np.asarray(treatment, dtype=float)
        design = cls(d.size)
        if intercept:
            design = design.intercept()
        design = design.add(name, d)
        for cov_name, values in (covariates or {}).items():
            design = design.add(cov_name, values)
        return design

    def intercept(self) -> DesignMatrix:
        return self.add(INTERCEPT, np.ones(self._nobs))

    def add(self, name: str, values) -> DesignMatrix:
        """Return a new design with column ``name`` appended."""
        if name in self.names:
            raise EstimationError(f"Regressor '{name}' is already in the design matrix.")
        col = np.asarray(values, dtype=float).ravel()
        if col.size != self._nobs:
            raise EstimationError(
                f"Regressor '{name}' has {col.size} values but the design has {self._nobs} observations."
            )
        return DesignMatrix(self._nobs, self._columns + [(name, col)])

    @property
    def nobs(self) -> int:
        return self._nobs

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self._columns]

    @property
    def values(self) -> np.ndarray:
        """The ``(nobs, k)`` matrix, columns in insertion order."""
        if not self._columns:
            return np.empty((self._nobs, 0))
        return np.column_stack([col for _, col in self._columns])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(dict(self._columns))

    def __len__(self) -> int:
        return self._nobs

    def __repr__(self) -> str:
        return f"DesignMatrix(nobs={self._nobs}, columns={self.names})"


class RegressionResult:
    """
    The result of an OLS fit, reported for one coefficient of interest.

    With a binary treatment and an intercept the coefficient is the
    (covariate-adjusted) average treatment effect. Widening the design with
    covariates changes nothing about how the result is read.
    """

    def __init__(self, result, design: DesignMatrix, outcome: np.ndarray, treatment: str) -> None:
        self._result = result
        self._design = design
        self._outcome = outcome
        self._treatment = treatment

    @property
    def effect(self) -> float:
        """Point estimate of the coefficient on treatment."""
        return float(self._result.params[self._treatment])

    @property
    def std_err(self) -> float:
        """Standard error of the treatment coefficient."""
        return float(self._result.bse[self._treatment])

    @property
    def conf_int(self) -> tuple[float, float]:
        """95% confidence interval for the treatment coefficient (t distribution)."""
        ci = self._result.conf_int()
        return (float(ci.loc[self._treatment, 0]), float(ci.loc[self._treatment, 1]))

    @property
    def tvalue(self) -> float:
        return float(self._result.tvalues[self._treatment])

    @property
    def pvalue(self) -> float:
        """p-value for ``H0: coefficient = 0``."""
        return float(self._result.pvalues[self._treatment])

    @property
    def params(self) -> pd.Series:
        """All fitted coefficients, indexed by regressor name."""
        return self._result.params.copy()

    @property
    def nobs(self) -> int:
        return int(self._result.nobs)

    @property
    def regressors(self) -> list[str]:
        return self._design.names

    @property
    def statsmodels_result(self):
        """The underlying statsmodels OLS result, for full diagnostics."""
        return self._result

    @property
    def assumptions(self) -> list[Assumption]:
        return list(REGRESSION_ASSUMPTIONS)

    def summary(self) -> str:
        lo, hi = self.conf_int
        controls = [n for n in self.regressors if n not in (INTERCEPT, self._treatment)]
        lines = [
            "",
            f"OLS Effect of {self._treatment}",
            "─" * 50,
            f"  Estimate             : {self.effect:>10.4f}"
            + (f"  (controlling for: {', '.join(controls)})" if controls else "  (no controls)"),
            "",
            f"  Std. error           : {self.std_err:>10.4f}",
            f"  95% CI               : [{lo:.4f}, {hi:.4f}]",
            f"  p-value              : {self.pvalue:>10.4f}",
            f"  Observations         : {self.nobs:>10d}",
            "",
        ]
        return "\n".join(lines)

    def refute(self, seed: RandomState = 54321):
        """
        Run refutation checks against this fit.

        Currently runs the **random common cause** check: a pure-noise
        regressor is added to the design and the coefficient on treatment
        must not move by more than one standard error.
        """
        from ..refutations._check import RefutationReport
        from ..refutations.regression import _check_random_common_cause

        checks = [
            _check_random_common_cause(
                self._design, self._outcome, self._treatment,
                self.effect, self.std_err, rng=seed,
            ),
        ]
        return RefutationReport(checks=checks, treatment=self._treatment)

    def __repr__(self) -> str:
        return self.summary()


class LeastSquares:
    """
    Ordinary least squares on an explicit design matrix.

    The caller assembles the regressors (intercept, treatment, covariates)
    and names the one whose coefficient is the estimate::

        X = DesignMatrix.for_treatment(d, covariates={"c": c})
        result = LeastSquares(X, treatment="d").fit(y)
        print(result.summary())

    Fitting fails loudly instead of returning a meaningless coefficient when
    the design is rank deficient.
    """

    def __init__(self, design: DesignMatrix, treatment: str = "d") -> None:
        if treatment not in design.names:
            raise ValueError(
                f"Treatment '{treatment}' is not a column of the design matrix. "
                f"Known columns: {design.names}"
            )
        self._design = design
        self._treatment = treatment

    def _validate_design(self) -> np.ndarray:
        X = self._design.values
        n, k = X.shape
        if n <= k:
            raise EstimationError(
                f"OLS needs more observations than regressors to estimate the error variance "
                f"(got {n} observations for {k} regressors)."
            )
        if not np.isfinite(X).all():
            raise EstimationError("The design matrix contains NaN or infinite values.")

        rank = np.linalg.matrix_rank(X)
        if rank < k:
            constant = [
                name for name, col in zip(self._design.names, X.T)
                if name != INTERCEPT and np.ptp(col) == 0
            ]
            hint = f" Zero-variance regressors: {constant}." if constant else ""
            raise SingularDesignError(
                f"Design matrix has rank {rank} but {k} columns {self._design.names}; "
                f"the coefficients are not identified.{hint}"
            )
        return X

    def fit(self, outcome) -> RegressionResult:
        """
        Regress ``outcome`` on the design matrix.

        Raises
        ------
        EstimationError
            If the outcome length does not match the design or there are too
            few observations.
        SingularDesignError
            If the design matrix is rank deficient.
        """
        y = np.asarray(outcome, dtype=float).ravel()
        if y.size != self._design.nobs:
            raise EstimationError(
                f"Outcome has {y.size} values but the design has {self._design.nobs} observations."
            )
        if not np.isfinite(y).all():
            raise EstimationError("The outcome contains NaN or infinite values.")
        self._validate_design()

        result = sm.OLS(y, self._design.to_frame()).fit()
        fitted = RegressionResult(result, self._design, y, self._treatment)
        logger.debug(
            "OLS %s on %s: %.4f (se %.4f)",
            self._treatment, self._design.names, fitted.effect, fitted.std_err,
        )
        return fitted

import numpy as np
import pytest

from counterfact import DesignMatrix, EstimationError, LeastSquares, SingularDesignError


RNG = np.random.default_rng(42)
N = 1_000


def make_data(true_effect=2.0):
    """
    Ground truth DGP:
      c ~ N(0, 1)                        [confounder]
      d = 1 if 0.8*c + noise > 0         [treatment]
      y = true_effect*d + 3*c + noise
    """
    c = RNG.normal(size=N)
    d = (0.8 * c + RNG.normal(size=N) > 0).astype(float)
    y = true_effect * d + 3.0 * c + RNG.normal(size=N)
    return d, c, y


class TestDesignMatrix:
    def test_for_treatment_column_order(self):
        d, c, _ = make_data()
        X = DesignMatrix.for_treatment(d, covariates={"c": c, "c2": c ** 2})
        assert X.names == ["const", "d", "c", "c2"]
        assert X.values.shape == (N, 4)
        assert (X.values[:, 0] == 1).all()

    def test_without_intercept(self):
        d, _, _ = make_data()
        X = DesignMatrix.for_treatment(d, intercept=False, name="treated")
        assert X.names == ["treated"]

    def test_add_returns_new_matrix(self):
        d, c, _ = make_data()
        base = DesignMatrix.for_treatment(d)
        wider = base.add("c", c)
        assert base.names == ["const", "d"]
        assert wider.names == ["const", "d", "c"]

    def test_chained_construction(self):
        d, c, _ = make_data()
        X = DesignMatrix(N).intercept().add("d", d).add("c", c)
        assert X.names == DesignMatrix.for_treatment(d, covariates={"c": c}).names
        assert np.array_equal(X.values, DesignMatrix.for_treatment(d, covariates={"c": c}).values)

    def test_duplicate_name_raises(self):
        d, _, _ = make_data()
        with pytest.raises(EstimationError, match="already in the design"):
            DesignMatrix.for_treatment(d).add("d", d)

    def test_length_mismatch_raises(self):
        d, _, _ = make_data()
        with pytest.raises(EstimationError, match="observations"):
            DesignMatrix.for_treatment(d).add("c", np.zeros(3))

    def test_empty_design_raises(self):
        with pytest.raises(EstimationError, match="at least one observation"):
            DesignMatrix(0)


class TestLeastSquares:
    def test_adjusted_recovers_true_effect(self):
        d, c, y = make_data(true_effect=2.0)
        result = LeastSquares(DesignMatrix.for_treatment(d, covariates={"c": c})).fit(y)
        assert abs(result.effect - 2.0) < 0.3

    def test_unadjusted_estimate_is_biased(self):
        d, c, y = make_data(true_effect=2.0)
        naive = LeastSquares(DesignMatrix.for_treatment(d)).fit(y)
        adjusted = LeastSquares(DesignMatrix.for_treatment(d, covariates={"c": c})).fit(y)
        assert naive.effect - 2.0 > 1.0
        assert naive.effect > adjusted.effect

    def test_matches_normal_equations(self):
        d, c, y = make_data()
        X = DesignMatrix.for_treatment(d, covariates={"c": c})
        beta = np.linalg.solve(X.values.T @ X.values, X.values.T @ y)
        result = LeastSquares(X).fit(y)
        assert np.allclose(result.params.values, beta)
        assert list(result.params.index) == ["const", "d", "c"]

    def test_binary_treatment_only_equals_difference_in_means(self):
        d, _, y = make_data()
        result = LeastSquares(DesignMatrix.for_treatment(d)).fit(y)
        assert result.effect == pytest.approx(y[d == 1].mean() - y[d == 0].mean())

    def test_result_attributes(self):
        d, c, y = make_data()
        result = LeastSquares(DesignMatrix.for_treatment(d, covariates={"c": c})).fit(y)
        lo, hi = result.conf_int
        assert lo < result.effect < hi
        assert result.std_err > 0
        assert 0 <= result.pvalue <= 1
        assert result.tvalue == pytest.approx(result.effect / result.std_err)
        assert result.nobs == N
        assert result.regressors == ["const", "d", "c"]
        assert result.statsmodels_result is not None

    def test_custom_treatment_name(self):
        d, c, y = make_data()
        X = DesignMatrix(N).intercept().add("c", c).add("treated", d)
        result = LeastSquares(X, treatment="treated").fit(y)
        assert abs(result.effect - 2.0) < 0.3

    def test_unknown_treatment_raises(self):
        d, _, _ = make_data()
        with pytest.raises(ValueError, match="Treatment 'x'"):
            LeastSquares(DesignMatrix.for_treatment(d), treatment="x")

    def test_zero_variance_regressor_raises(self):
        d, _, y = make_data()
        X = DesignMatrix.for_treatment(d).add("constant_c", np.full(N, 4.0))
        with pytest.raises(SingularDesignError, match="constant_c"):
            LeastSquares(X).fit(y)

    def test_collinear_regressors_raise(self):
        d, c, y = make_data()
        X = DesignMatrix.for_treatment(d, covariates={"c": c, "c_twice": 2 * c})
        with pytest.raises(SingularDesignError, match="rank"):
            LeastSquares(X).fit(y)

    def test_constant_treatment_raises(self):
        _, _, y = make_data()
        with pytest.raises(SingularDesignError):
            LeastSquares(DesignMatrix.for_treatment(np.ones(N))).fit(y)

    def test_too_few_observations_raise(self):
        X = DesignMatrix.for_treatment([0.0, 1.0])
        with pytest.raises(EstimationError, match="more observations than regressors"):
            LeastSquares(X).fit([1.0, 2.0])

    def test_outcome_length_mismatch_raises(self):
        d, _, y = make_data()
        with pytest.raises(EstimationError, match="Outcome has"):
            LeastSquares(DesignMatrix.for_treatment(d)).fit(y[:10])

    def test_nan_outcome_raises(self):
        d, _, y = make_data()
        y = y.copy()
        y[0] = np.nan
        with pytest.raises(EstimationError, match="NaN"):
            LeastSquares(DesignMatrix.for_treatment(d)).fit(y)

    def test_assumptions_and_summary(self):
        d, c, y = make_data()
        result = LeastSquares(DesignMatrix.for_treatment(d, covariates={"c": c})).fit(y)
        assert any("SUTVA" in a.name for a in result.assumptions)
        assert "controlling for: c" in result.summary()


class TestRefutation:
    def test_random_common_cause_passes(self):
        d, c, y = make_data()
        result = LeastSquares(DesignMatrix.for_treatment(d, covariates={"c": c})).fit(y)
        report = result.refute()

        assert report.passed
        assert len(report.checks) == 1
        assert report.checks[0].name == "Random common cause"
        assert report.failed_checks == []
        assert "All checks passed" in report.summary()

    def test_refutation_is_seeded(self):
        d, c, y = make_data()
        result = LeastSquares(DesignMatrix.for_treatment(d, covariates={"c": c})).fit(y)
        assert result.refute(seed=1).checks[0].detail == result.refute(seed=1).checks[0].detail

    def test_noise_column_name_does_not_clash(self):
        d, _, y = make_data()
        X = DesignMatrix.for_treatment(d).add("_rcc", RNG.normal(size=N))
        report = LeastSquares(X).fit(y).refute()
        assert len(report.checks) == 1

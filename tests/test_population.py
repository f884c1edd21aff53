import numpy as np
import pytest

from counterfact import Population, PopulationBuilder, SDODecomposition, SampleError, decompose, partition
from counterfact.sampling import draw_normal


def make_population(n=5_000, seed=0):
    """
    Y0 ~ N(100, 25) clamped to [0, 200]
    Y1 = Y0 + N(5, 2)
    """
    return (
        PopulationBuilder(n, rng=seed)
        .baseline(100, 25, bounds=(0, 200))
        .effect(5, 2)
        .build()
    )


def make_selected_treatment(seed=0, n=20_000):
    """
    Treatment taken up by those with the larger gain and the lower baseline,
    so both selection bias and heterogeneity bias are non-zero.
    """
    rng = np.random.default_rng(seed)
    pop = (
        PopulationBuilder(n, rng)
        .covariate("c")
        .depends_on("c", 2.0)
        .baseline(10, 1)
        .effect(3, 2)
        .build()
    )
    d = (pop.treatment_effect - 0.5 * pop.covariates["c"] + rng.normal(size=n) > 3).astype(int)
    return pop.with_treatment(d)


class TestPopulationBuilder:
    def test_ground_truth_fields(self):
        pop = make_population()
        assert pop.size == 5_000
        assert pop.y0.min() >= 0 and pop.y0.max() <= 200
        assert np.allclose(pop.treatment_effect, pop.y1 - pop.y0)
        assert abs(pop.ate - 5) < 0.1

    def test_seeded(self):
        a, b = make_population(seed=3), make_population(seed=3)
        assert np.array_equal(a.y0, b.y0)
        assert np.array_equal(a.y1, b.y1)

    def test_draw_order(self):
        """Covariates, then baseline noise, then effects, from one stream."""
        pop = PopulationBuilder(50, rng=4).covariate("c").depends_on("c", 2.0).baseline(10, 1).effect(3, 2).build()
        rng = np.random.default_rng(4)
        c = draw_normal(50, 0, 1, rng)
        y0 = draw_normal(50, 10, 1, rng) + 2.0 * c
        y1 = y0 + draw_normal(50, 3, 2, rng)
        assert np.allclose(pop.covariates["c"], c)
        assert np.allclose(pop.y0, y0)
        assert np.allclose(pop.y1, y1)

    def test_negative_covariate_sd_raises(self):
        with pytest.raises(SampleError, match="non-negative"):
            PopulationBuilder(10, rng=0).covariate("c", sd=-1).build()

    def test_ids_are_unique(self):
        pop = make_population(n=100)
        assert pop.ids.tolist() == list(range(1, 101))

    def test_constant_effect(self):
        pop = PopulationBuilder(100, rng=0).baseline(0, 1).effect(2.5).build()
        assert np.allclose(pop.treatment_effect, 2.5)

    def test_covariate_shifts_outcomes(self):
        pop = PopulationBuilder(20_000, rng=0).covariate("c").depends_on("c", 3.0).baseline(0, 1).build()
        slope = np.polyfit(pop.covariates["c"], pop.y0, 1)[0]
        assert abs(slope - 3.0) < 0.05

    def test_unknown_covariate_dependence_raises(self):
        with pytest.raises(SampleError, match="Unknown covariate"):
            PopulationBuilder(10, rng=0).depends_on("c", 1.0)

    def test_duplicate_covariate_raises(self):
        with pytest.raises(SampleError, match="already declared"):
            PopulationBuilder(10, rng=0).covariate("c").covariate("c")

    def test_invalid_size_raises(self):
        with pytest.raises(SampleError, match="positive"):
            PopulationBuilder(0, rng=0)

    def test_inverted_bounds_raise(self):
        with pytest.raises(ValueError, match="greater than upper bound"):
            PopulationBuilder(10, rng=0).baseline(0, 1, bounds=(5, 1))


class TestPopulation:
    def test_switching_equation(self):
        pop = make_population(n=10).with_treatment([1, 0] * 5)
        expected = np.where(pop.treatment == 1, pop.y1, pop.y0)
        assert np.array_equal(pop.observed, expected)

    def test_copy_on_transform(self):
        pop = make_population(n=10)
        treated = pop.with_treatment(np.ones(10, dtype=int))
        assert pop.treatment is None
        assert treated.treatment is not None
        assert treated.y0 is pop.y0

    def test_observed_requires_treatment(self):
        with pytest.raises(SampleError, match="with_treatment"):
            make_population(n=10).observed

    def test_treatment_must_be_binary(self):
        with pytest.raises(SampleError, match="binary"):
            make_population(n=3).with_treatment([0, 1, 2])

    def test_length_mismatch_raises(self):
        with pytest.raises(SampleError, match="entries"):
            make_population(n=10).with_treatment([0, 1])

    def test_selection_and_subset(self):
        pop = make_population(n=1_000)
        part = partition(pop.size, {"in sample": 100}, rng=1)
        selected = pop.with_selection(part).select("in sample")
        assert selected.size == 100
        assert np.array_equal(selected.y0, pop.y0[part.mask("in sample")])

    def test_select_requires_selection(self):
        with pytest.raises(SampleError, match="with_selection"):
            make_population(n=10).select("in sample")

    def test_att_and_atu_weight_to_ate(self):
        pop = make_selected_treatment()
        pi = pop.treatment.mean()
        assert pop.ate == pytest.approx(pi * pop.att + (1 - pi) * pop.atu)

    def test_to_frame_columns(self):
        pop = (
            make_population(n=20)
            .with_treatment([0, 1] * 10)
            .with_selection(partition(20, (5,), rng=0))
            .with_covariate("c", np.arange(20))
        )
        df = pop.to_frame()
        assert list(df.columns) == ["id", "y0", "y1", "delta", "d", "y", "s", "c"]
        assert len(df) == 20
        assert (df["delta"] == df["y1"] - df["y0"]).all()

    def test_direct_construction_from_lists(self):
        pop = Population(y0=[1, 2, 3], y1=[2, 4, 6], treatment=[0, 1, 1], covariates={"c": [0, 1, 2]})
        assert pop.ate == pytest.approx(2.0)
        assert pop.observed.tolist() == [1.0, 4.0, 6.0]
        assert pop.covariates["c"].dtype == float

    def test_direct_construction_validates_shapes(self):
        with pytest.raises(SampleError, match="equal length"):
            Population(y0=np.zeros(3), y1=np.zeros(4))

    def test_repr(self):
        assert "N=10" in repr(make_population(n=10))


class TestDecomposition:
    def test_identity_holds(self):
        dec = decompose(make_selected_treatment())
        assert isinstance(dec, SDODecomposition)
        assert dec.sdo == pytest.approx(dec.ate + dec.selection_bias + dec.heterogeneity_bias, abs=1e-9)

    def test_biases_are_present(self):
        dec = decompose(make_selected_treatment())
        # treated units have lower baselines and larger gains than average
        assert dec.selection_bias < 0
        assert dec.att > dec.atu
        assert dec.heterogeneity_bias > 0

    def test_random_assignment_has_small_bias(self):
        pop = make_population(n=50_000, seed=1)
        d = np.random.default_rng(1).integers(0, 2, size=pop.size)
        dec = decompose(pop.with_treatment(d))
        assert abs(dec.selection_bias) < 1.0
        assert abs(dec.heterogeneity_bias) < 0.1
        assert abs(dec.sdo - dec.ate) < 1.0

    def test_requires_treatment(self):
        with pytest.raises(SampleError, match="treatment"):
            decompose(make_population(n=10))

    def test_requires_both_groups(self):
        pop = make_population(n=10).with_treatment(np.ones(10, dtype=int))
        with pytest.raises(SampleError, match="both treated and untreated"):
            decompose(pop)

    def test_summary(self):
        assert "selection bias" in decompose(make_selected_treatment()).summary()

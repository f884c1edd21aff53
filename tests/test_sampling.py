import numpy as np
import pytest

from counterfact import Partition, SampleError, partition
from counterfact.sampling import UNSELECTED, as_generator, draw_normal, random_keys


class TestPartition:
    def test_two_groups_of_200(self):
        part = partition(1_000, (200, 200), rng=7)
        g1, g2 = part.group("group 1"), part.group("group 2")

        assert len(g1) == 200
        assert len(g2) == 200
        assert set(g1).isdisjoint(g2)

        everyone = np.concatenate([g1, g2, part.unselected])
        assert len(everyone) == 1_000
        assert sorted(everyone) == list(range(1_000))

    def test_named_groups(self):
        part = partition(500, {"treatment survey": 100, "control survey": 50}, rng=1)
        assert part.names == ["treatment survey", "control survey"]
        assert part.sizes == {"treatment survey": 100, "control survey": 50}
        assert len(part.unselected) == 350
        assert set(np.unique(part.labels)) == {"treatment survey", "control survey", UNSELECTED}

    def test_same_seed_same_assignment(self):
        a = partition(1_000, (200, 200), rng=123)
        b = partition(1_000, (200, 200), rng=123)
        assert np.array_equal(a.labels, b.labels)

    def test_different_seed_different_assignment(self):
        a = partition(1_000, (200, 200), rng=1)
        b = partition(1_000, (200, 200), rng=2)
        assert not np.array_equal(a.labels, b.labels)

    def test_accepts_generator(self):
        a = partition(100, (10,), rng=np.random.default_rng(5))
        b = partition(100, (10,), rng=5)
        assert np.array_equal(a.group("group 1"), b.group("group 1"))

    def test_groups_follow_key_order(self):
        keys = random_keys(50, rng=9)
        part = partition(50, (5, 5), rng=9)
        order = np.argsort(keys, kind="stable")
        assert sorted(part.group("group 1")) == sorted(order[:5])
        assert sorted(part.group("group 2")) == sorted(order[5:10])

    def test_whole_population(self):
        part = partition(10, (4, 6), rng=0)
        assert len(part.unselected) == 0

    def test_masks_and_groups_agree(self):
        part = partition(100, {"a": 30}, rng=0)
        assert part.mask("a").sum() == 30
        assert np.array_equal(part.groups["a"], np.flatnonzero(part.mask("a")))

    def test_labels_are_a_copy(self):
        part = partition(10, (5,), rng=0)
        labels = part.labels
        labels[:] = "changed"
        assert (part.labels != "changed").all()

    def test_repr(self):
        assert isinstance(partition(10, (5,), rng=0), Partition)
        assert "N=10" in repr(partition(10, (5,), rng=0))

    def test_unknown_group(self):
        with pytest.raises(KeyError, match="Unknown group"):
            partition(10, (5,), rng=0).group("group 2")

    def test_sizes_exceeding_population_raise(self):
        with pytest.raises(SampleError, match="only 100"):
            partition(100, (60, 60), rng=0)

    def test_non_positive_population_raises(self):
        with pytest.raises(SampleError, match="positive"):
            partition(0, (1,), rng=0)

    def test_negative_size_raises(self):
        with pytest.raises(SampleError, match="invalid size"):
            partition(10, (-1,), rng=0)

    def test_reserved_name_raises(self):
        with pytest.raises(SampleError, match="reserved"):
            partition(10, {UNSELECTED: 3}, rng=0)

    def test_no_groups_raise(self):
        with pytest.raises(SampleError, match="At least one"):
            partition(10, (), rng=0)

    def test_sample_error_is_value_error(self):
        with pytest.raises(ValueError):
            partition(10, (11,), rng=0)


class TestDraws:
    def test_draw_normal_is_seeded(self):
        assert np.array_equal(draw_normal(10, 5, 2, rng=3), draw_normal(10, 5, 2, rng=3))

    def test_draw_normal_moments(self):
        x = draw_normal(50_000, 5, 2, rng=0)
        assert abs(x.mean() - 5) < 0.05
        assert abs(x.std() - 2) < 0.05

    def test_draw_normal_rejects_negative_sd(self):
        with pytest.raises(SampleError, match="non-negative"):
            draw_normal(10, 0, -1, rng=0)

    def test_random_keys_in_unit_interval(self):
        keys = random_keys(1_000, rng=0)
        assert ((keys >= 0) & (keys < 1)).all()

    def test_implicit_global_state_rejected(self):
        with pytest.raises(SampleError, match="seed"):
            as_generator(None)

import math

import numpy as np
import pytest

from elisa.stats import (
    Group,
    PooledVariance,
    mean,
    one_way_anova,
    summarize,
    t_test,
    tukey_hsd,
    variance,
)


def test_descriptive_helpers():
    assert mean([]) == 0.0
    assert variance([4.0]) == 0.0
    assert np.isclose(variance([1.0, 2.0, 3.0, 4.0]), 5.0 / 3.0)

    summary = summarize([2.0, 4.0, 6.0])
    assert summary.n == 3
    assert np.isclose(summary.mean, 4.0)
    assert np.isclose(summary.sd, 2.0)
    assert np.isclose(summary.sem, 2.0 / math.sqrt(3))
    assert summarize([]).n == 0


def test_group_coerces_values():
    g = Group(7, [1, 2, 3])
    assert g.name == "7"
    assert g.values == (1.0, 2.0, 3.0)
    assert g.n == 3


class TestOneWayAnova:
    def test_identical_groups_are_not_significant(self):
        groups = [Group(name, [1.0, 2.0, 3.0]) for name in ("a", "b", "c")]
        result = one_way_anova(groups)
        assert result.f_value == 0.0
        assert result.p_value == pytest.approx(1.0)
        assert not result.significant
        assert (result.df_between, result.df_within) == (2, 6)

    def test_two_identical_groups_are_not_significant(self):
        groups = [Group("a", [1.0, 2.0, 3.0]), Group("b", [1.0, 2.0, 3.0])]
        result = one_way_anova(groups)
        assert result.f_value == 0.0
        assert result.p_value == pytest.approx(1.0)
        assert not result.significant
        assert (result.df_between, result.df_within) == (1, 4)

    def test_separated_groups(self):
        groups = [
            Group("a", [1.0, 2.0, 3.0]),
            Group("b", [4.0, 5.0, 6.0]),
            Group("c", [7.0, 8.0, 9.0]),
        ]
        result = one_way_anova(groups)
        # SSb = 54, SSw = 6 -> F = (54 / 2) / (6 / 6) = 27
        assert result.ss_between == pytest.approx(54.0)
        assert result.ss_within == pytest.approx(6.0)
        assert result.f_value == pytest.approx(27.0)
        assert result.p_value < 0.01
        assert result.significant
        assert result.method == "One-way ANOVA"

    def test_single_group_is_neutral(self):
        result = one_way_anova([Group("a", [1.0, 2.0])])
        assert (result.f_value, result.p_value) == (0.0, 1.0)
        assert (result.df_between, result.df_within) == (0, 0)

    def test_no_within_df_is_neutral(self):
        result = one_way_anova([Group("a", [1.0]), Group("b", [5.0])])
        assert (result.f_value, result.p_value) == (0.0, 1.0)
        assert (result.df_between, result.df_within) == (1, 0)
        assert not result.significant

    def test_matches_scipy(self):
        stats = pytest.importorskip("scipy.stats")
        samples = [[12.1, 11.8, 12.5, 12.0], [13.0, 14.2, 13.1], [12.4, 12.9, 13.3]]
        expected = stats.f_oneway(*samples)
        result = one_way_anova([Group(str(i), s) for i, s in enumerate(samples)])
        assert result.f_value == pytest.approx(expected.statistic, rel=1e-9)
        assert result.p_value == pytest.approx(expected.pvalue, rel=1e-7)


class TestTukeyHSD:
    def test_one_group_far_from_two_identical(self):
        groups = [
            Group("a", [1.0, 2.0, 3.0]),
            Group("b", [1.0, 2.0, 3.0]),
            Group("c", [10.0, 11.0, 12.0]),
        ]
        anova = one_way_anova(groups)
        results = tukey_hsd(groups, anova.ms_within, anova.df_within)

        assert [(r.group1, r.group2) for r in results] == [
            ("a", "b"),
            ("a", "c"),
            ("b", "c"),
        ]
        same, far1, far2 = results
        assert not same.significant
        assert same.significance is None
        assert same.p_value == 1.0
        for r in (far1, far2):
            assert r.significant
            assert r.mean_diff == pytest.approx(9.0)
            # q_crit(k=3, df=6) = 4.00, se = sqrt(1 / 3)
            assert r.hsd == pytest.approx(4.00 * math.sqrt(1.0 / 3.0))
            assert r.p_value == 0.0001
            assert r.significance == "***"

    def test_unequal_sizes_use_harmonic_mean(self):
        groups = [Group("a", [1.0, 2.0]), Group("b", [5.0, 6.0, 7.0, 8.0])]
        (result,) = tukey_hsd(groups, ms_within=2.0, df_within=4)
        n_harmonic = 2 * 2 * 4 / 6
        assert result.q_value == pytest.approx(5.0 / math.sqrt(2.0 / n_harmonic))

    def test_degenerate_inputs_give_no_pairs(self):
        groups = [Group("a", [1.0, 2.0]), Group("b", [3.0, 4.0])]
        assert tukey_hsd(groups, ms_within=0.0, df_within=2) == []
        assert tukey_hsd(groups[:1], ms_within=1.0, df_within=2) == []


class TestTTest:
    def test_well_separated_groups(self):
        result = t_test(
            Group("low", [1, 2, 3, 4, 5]), Group("high", [10, 11, 12, 13, 14])
        )
        assert result.t_value == pytest.approx(9.0)
        assert result.df == 8
        assert result.mean_diff == pytest.approx(-9.0)
        assert result.p_value < 0.001
        assert result.significance in ("***", "****")
        assert result.significant
        assert (result.group1, result.group2) == ("low", "high")

    def test_small_group_is_neutral(self):
        result = t_test(Group("a", [1.0]), Group("b", [5.0, 6.0]))
        assert (result.t_value, result.p_value, result.df) == (0.0, 1.0, 0)
        assert not result.significant
        assert result.significance is None

    def test_pooled_variance_overrides_pair(self):
        pooled = PooledVariance(pooled_variance=4.0, pooled_df=20)
        result = t_test(Group("a", [1.0, 3.0]), Group("b", [5.0, 7.0]), pooled)
        assert result.df == 20
        # se = sqrt(4 * (1/2 + 1/2)) = 2
        assert result.t_value == pytest.approx(2.0)

    def test_zero_standard_error(self):
        equal = t_test(Group("a", [2.0, 2.0]), Group("b", [2.0, 2.0]))
        assert (equal.t_value, equal.p_value) == (0.0, 1.0)

        different = t_test(Group("a", [2.0, 2.0]), Group("b", [3.0, 3.0]))
        assert math.isinf(different.t_value)
        assert different.p_value == 0.0
        assert different.significance == "****"

    def test_matches_scipy(self):
        stats = pytest.importorskip("scipy.stats")
        a = [12.1, 11.8, 12.5, 12.0]
        b = [13.0, 14.2, 13.1]
        expected = stats.ttest_ind(a, b, equal_var=True)
        result = t_test(Group("a", a), Group("b", b))
        assert result.t_value == pytest.approx(abs(expected.statistic), rel=1e-9)
        assert result.p_value == pytest.approx(expected.pvalue, rel=1e-7)

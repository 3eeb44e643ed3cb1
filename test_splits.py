import numpy as np
import pytest

from cartree.impurity import (
    class_counts,
    get_impurity,
    node_score_entropy_from_counts,
    node_score_gini_from_counts,
)
from cartree.exceptions import InvalidHyperparameter
from cartree.schema import CATEGORICAL, NUMERIC, Dimension, FeatureSchema
from cartree.splits import (
    evaluate_categorical_split,
    evaluate_numeric_split,
    find_best_split,
    midpoint,
)
from cartree.tree import CategoricalSplit, NumericSplit

gini = node_score_gini_from_counts


def _ones(n):
    return np.ones(n, dtype=np.float64)


# ============================
#   Impurity
# ============================

def test_gini_and_entropy_from_counts():
    assert gini(np.array([2.0, 2.0])) == pytest.approx(0.5)
    assert gini(np.array([4.0, 0.0])) == 0.0
    assert gini(np.array([0.0, 0.0])) == 0.0
    assert node_score_entropy_from_counts(np.array([2.0, 2.0])) == pytest.approx(1.0)
    assert node_score_entropy_from_counts(np.array([3.0, 0.0])) == pytest.approx(0.0)


def test_weighted_class_counts():
    y = np.array([0, 1, 1, 2])
    counts = class_counts(y, 4, np.array([0.5, 1.0, 2.0, 1.0]))
    assert np.allclose(counts, [0.5, 3.0, 1.0, 0.0])


def test_unknown_impurity_is_rejected():
    with pytest.raises(InvalidHyperparameter):
        get_impurity('mse')


# ============================
#   Numeric dimensions
# ============================

def test_numeric_split_at_midpoint():
    x = np.array([1.0, 2.0, 3.0, 4.0])
    y = np.array([0, 0, 1, 1])
    gain, split = evaluate_numeric_split(x, y, _ones(4), 2, 1, gini, dimension=3)
    assert gain == pytest.approx(0.5)
    assert split == NumericSplit(3, 2.5)


def test_numeric_split_ignores_input_order():
    x = np.array([4.0, 1.0, 3.0, 2.0])
    y = np.array([1, 0, 1, 0])
    gain, split = evaluate_numeric_split(x, y, _ones(4), 2, 1, gini)
    assert split.threshold == 2.5


def test_numeric_ties_prefer_lowest_threshold():
    x = np.array([1.0, 2.0, 3.0, 4.0])
    y = np.array([0, 1, 1, 0])
    gain, split = evaluate_numeric_split(x, y, _ones(4), 2, 1, gini)
    assert gain == pytest.approx(1.0 / 6.0)
    assert split.threshold == 1.5


def test_numeric_minimum_leaf_size_filters_candidates():
    x = np.array([1.0, 2.0, 3.0, 4.0])
    y = np.array([0, 1, 1, 0])

    gain, split = evaluate_numeric_split(x, y, _ones(4), 2, 2, gini)
    assert split.threshold == 2.5
    assert gain == pytest.approx(0.0)

    gain, split = evaluate_numeric_split(x, y, _ones(4), 2, 3, gini)
    assert split is None
    assert gain == 0.0


def test_numeric_never_splits_between_equal_values():
    x = np.array([1.0, 1.0, 1.0, 2.0])
    y = np.array([0, 1, 0, 1])
    gain, split = evaluate_numeric_split(x, y, _ones(4), 2, 2, gini)
    assert split is None


def test_constant_numeric_dimension_has_no_split():
    x = np.full(5, 7.0)
    y = np.array([0, 1, 0, 1, 0])
    assert evaluate_numeric_split(x, y, _ones(5), 2, 1, gini) == (0.0, None)


def test_weights_change_the_chosen_threshold():
    x = np.array([1.0, 2.0, 3.0])
    y = np.array([0, 1, 0])

    _, split = evaluate_numeric_split(x, y, _ones(3), 2, 1, gini)
    assert split.threshold == 1.5

    gain, split = evaluate_numeric_split(x, y, np.array([1.0, 1.0, 5.0]), 2, 1, gini)
    assert split.threshold == 2.5
    assert gain == pytest.approx(5.0 / 49.0)


# ============================
#   Categorical dimensions
# ============================

def test_categorical_multiway_split():
    codes = np.array([0.0, 0.0, 1.0, 1.0, 2.0, 2.0])
    y = np.array([0, 0, 0, 0, 1, 1])
    gain, split = evaluate_categorical_split(codes, y, _ones(6), 2, 3, 1, gini, dimension=1)
    assert gain == pytest.approx(4.0 / 9.0)
    assert split == CategoricalSplit(1, 3)
    assert split.n_children == 3


def test_categorical_unobserved_category_does_not_block_split():
    codes = np.array([0.0, 0.0, 2.0, 2.0])
    y = np.array([0, 0, 1, 1])
    gain, split = evaluate_categorical_split(codes, y, _ones(4), 2, 3, 1, gini)
    assert gain == pytest.approx(0.5)
    assert split is not None


def test_categorical_small_partition_blocks_split():
    codes = np.array([0.0, 0.0, 0.0, 1.0])
    y = np.array([0, 0, 0, 1])
    assert evaluate_categorical_split(codes, y, _ones(4), 2, 2, 2, gini) == (0.0, None)


def test_categorical_single_present_category_has_no_split():
    codes = np.array([1.0, 1.0, 1.0])
    y = np.array([0, 1, 0])
    assert evaluate_categorical_split(codes, y, _ones(3), 2, 4, 1, gini) == (0.0, None)


# ============================
#   Scanning all dimensions
# ============================

def test_best_split_ties_prefer_lowest_dimension():
    col = np.array([1.0, 2.0, 3.0, 4.0])
    X = np.column_stack([col, col])
    y = np.array([0, 0, 1, 1])
    gain, split = find_best_split(X, y, _ones(4), FeatureSchema.numeric(2), 2, 1, gini)
    assert split.dimension == 0


def test_best_split_picks_the_informative_dimension():
    X = np.array([
        [5.0, 0.0],
        [1.0, 0.0],
        [5.0, 1.0],
        [1.0, 1.0],
    ])
    y = np.array([0, 0, 1, 1])
    schema = FeatureSchema([Dimension(NUMERIC), Dimension(CATEGORICAL, 2)])
    gain, split = find_best_split(X, y, _ones(4), schema, 2, 1, gini)
    assert split == CategoricalSplit(1, 2)
    assert gain == pytest.approx(0.5)


def test_no_dimension_splits():
    X = np.ones((4, 3))
    y = np.array([0, 1, 0, 1])
    assert find_best_split(X, y, _ones(4), FeatureSchema.numeric(3), 2, 1, gini) == (0.0, None)


# ============================
#   Thresholds between close or huge values
# ============================

def test_midpoint_is_strictly_above_the_lower_value():
    lo = 1.0
    hi = np.nextafter(1.0, 2.0)
    t = midpoint(lo, hi)
    assert lo < t <= hi
    assert midpoint(1.0, 2.0) == 1.5
    assert midpoint(-3.0, -1.0) == -2.0


def test_midpoint_of_huge_values_stays_finite():
    t = midpoint(1e308, 1.7e308)
    assert np.isfinite(t)
    assert 1e308 < t <= 1.7e308

    t = midpoint(-1.7e308, 1.7e308)
    assert np.isfinite(t)
    assert -1.7e308 < t <= 1.7e308


def test_adjacent_float_split_separates_the_values():
    up = np.nextafter(1.0, 2.0)
    x = np.array([1.0, 1.0, up, up])
    y = np.array([0, 0, 1, 1])
    gain, split = evaluate_numeric_split(x, y, _ones(4), 2, 1, gini)
    assert gain == pytest.approx(0.5)
    assert split.partition(x).tolist() == [0, 0, 1, 1]


def test_huge_value_split_separates_the_values():
    x = np.array([1e308, 1e308, 1.7e308, 1.7e308])
    y = np.array([0, 0, 1, 1])
    _, split = evaluate_numeric_split(x, y, _ones(4), 2, 1, gini)
    assert np.isfinite(split.threshold)
    assert split.partition(x).tolist() == [0, 0, 1, 1]

'''
Split evaluation for numeric and categorical dimensions.

Gains are weighted impurity reductions:

    gain = impurity(parent) - sum_c (w_c / w_parent) * impurity(c)

where w_* are summed point weights. Minimum leaf sizes are checked on
point counts, not on weights.
'''
import numpy as np

from .impurity import class_counts
from .tree import CategoricalSplit, NumericSplit


def midpoint(lo, hi):
    '''
    Threshold t with lo < t <= hi, so that `x < t` separates lo from hi.

    Falls back to hi when the midpoint rounds onto lo (adjacent floats) or
    is not finite.
    '''
    t = lo + (hi - lo) / 2.0
    if t <= lo or not np.isfinite(t):
        return hi
    return t


def evaluate_numeric_split(column, y, weights, n_classes, minimum_leaf_size,
                           impurity, dimension=0):
    '''
    Find the best threshold for one numeric dimension.

    Samples are sorted by value and every midpoint between consecutive
    distinct values is a candidate. Left/right class weights are tracked
    incrementally. On equal gains the lowest threshold is kept.

    Returns
    -------
    (gain, NumericSplit) or (0.0, None) if no candidate is admissible.
    '''
    n_node_samples = column.size
    if n_node_samples < 2:
        return 0.0, None

    # Stable sort by feature value
    order = np.argsort(column, kind='mergesort')
    fv_sorted = column[order]
    if fv_sorted[0] == fv_sorted[-1]:
        return 0.0, None
    y_sorted = y[order]
    w_sorted = weights[order]

    parent_counts = class_counts(y, n_classes, weights)
    total_weight = float(parent_counts.sum())
    if total_weight <= 0.0:
        return 0.0, None
    parent_impurity = impurity(parent_counts)

    left_counts = np.zeros(n_classes, dtype=np.float64)
    right_counts = parent_counts.copy()
    left_weight = 0.0

    best_gain = -np.inf
    best_threshold = None

    for i in range(1, n_node_samples):
        c = y_sorted[i - 1]
        w = w_sorted[i - 1]
        left_counts[c] += w
        right_counts[c] -= w
        left_weight += w

        # Cannot split between equal feature values
        if fv_sorted[i] == fv_sorted[i - 1]:
            continue

        n_left = i
        n_right = n_node_samples - i
        if n_left < minimum_leaf_size or n_right < minimum_leaf_size:
            continue

        right_weight = total_weight - left_weight
        gain = parent_impurity - (
            (left_weight / total_weight) * impurity(left_counts) +
            (right_weight / total_weight) * impurity(right_counts)
        )

        if gain > best_gain:
            best_gain = gain
            best_threshold = midpoint(fv_sorted[i - 1], fv_sorted[i])

    if best_threshold is None:
        return 0.0, None
    return float(best_gain), NumericSplit(dimension, best_threshold)


def evaluate_categorical_split(column, y, weights, n_classes, num_categories,
                               minimum_leaf_size, impurity, dimension=0):
    '''
    Score the multiway split of one categorical dimension.

    Each category gets its own child. Categories not present at this node
    are empty children and do not count against minimum_leaf_size, but at
    least two categories must be present and each present one must hold
    minimum_leaf_size points.
    '''
    codes = column.astype(np.intp)
    sizes = np.bincount(codes, minlength=num_categories)
    present = sizes[sizes > 0]
    if present.size < 2 or present.min() < minimum_leaf_size:
        return 0.0, None

    # (num_categories, n_classes) table of class weights per category
    table = np.bincount(
        codes * n_classes + y, weights=weights, minlength=num_categories * n_classes
    ).reshape(num_categories, n_classes)

    parent_counts = table.sum(axis=0)
    total_weight = float(parent_counts.sum())
    if total_weight <= 0.0:
        return 0.0, None

    children = 0.0
    for counts in table:
        child_weight = float(counts.sum())
        if child_weight > 0.0:
            children += (child_weight / total_weight) * impurity(counts)

    gain = impurity(parent_counts) - children
    return float(gain), CategoricalSplit(dimension, num_categories)


def evaluate_split(X, y, weights, schema, dimension, n_classes,
                   minimum_leaf_size, impurity):
    '''
    Best split of one dimension of the node data X, dispatched on its kind.
    '''
    column = X[:, dimension]
    if schema.is_categorical(dimension):
        return evaluate_categorical_split(
            column, y, weights, n_classes, schema.num_categories(dimension),
            minimum_leaf_size, impurity, dimension=dimension,
        )
    return evaluate_numeric_split(
        column, y, weights, n_classes, minimum_leaf_size, impurity,
        dimension=dimension,
    )


def find_best_split(X, y, weights, schema, n_classes, minimum_leaf_size, impurity):
    '''
    Scan every dimension in order and keep the highest gain.

    Ties go to the lowest dimension index.

    Returns
    -------
    (gain, split) or (0.0, None) if no dimension has an admissible split.
    '''
    best_gain = -np.inf
    best_split = None

    for j in range(len(schema)):
        gain, split = evaluate_split(
            X, y, weights, schema, j, n_classes, minimum_leaf_size, impurity
        )
        if split is not None and gain > best_gain:
            best_gain = gain
            best_split = split

    if best_split is None:
        return 0.0, None
    return best_gain, best_split

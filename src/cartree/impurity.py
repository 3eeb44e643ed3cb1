import numpy as np

from .exceptions import InvalidHyperparameter


def node_score_gini_from_counts(counts):
    '''
    Compute Gini impurity from (possibly weighted) class counts.

    Parameters
    ----------
    counts : 1D numpy array
        counts[k] = total weight of class k in the node.

    Returns
    -------
    float
        G = 1 - sum_k (counts[k]^2) / n^2, with n = sum_k counts[k].
    '''
    n = float(counts.sum())
    if n <= 0.0:
        return 0.0
    sum_sq = float((counts.astype(np.float64) ** 2).sum())
    return 1.0 - sum_sq / (n * n)


def node_score_entropy_from_counts(counts):
    '''
    Compute Entropy impurity from (possibly weighted) class counts.

        H = log2(n) - (1/n) * sum_k counts[k] * log2(counts[k])

    For counts[k] = 0, the term counts[k]*log2(counts[k]) is taken as 0.
    '''
    n = float(counts.sum())
    if n <= 0.0:
        return 0.0

    counts = counts.astype(np.float64)
    mask = counts > 0
    if not np.any(mask):
        return 0.0

    c = counts[mask]
    return float(np.log2(n) - (c * np.log2(c)).sum() / n)


IMPURITIES = {
    'gini': node_score_gini_from_counts,
    'entropy': node_score_entropy_from_counts,
}


def get_impurity(name):
    try:
        return IMPURITIES[name]
    except KeyError:
        raise InvalidHyperparameter(
            f"Unknown impurity '{name}', use 'gini' or 'entropy'."
        ) from None


def class_counts(y, n_classes, weights=None):
    '''
    Total weight of each class in y (plain counts when weights is None).
    '''
    return np.bincount(y, weights=weights, minlength=n_classes).astype(np.float64)

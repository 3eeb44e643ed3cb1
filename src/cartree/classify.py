import logging

import numpy as np

from .exceptions import InvalidInputShape

logger = logging.getLogger(__name__)


def classify_point(x, root):
    '''
    Return the node whose distribution answers the query point x.

    Normally this is a leaf. When x carries a categorical code the tree
    never saw (negative, non-integral or >= num_categories), descent stops
    at the splitting node and its training distribution is used.
    '''
    node = root
    while not node.is_leaf:
        split = node.split
        c = split.child_index(x[split.dimension])
        if c is None:
            logger.debug('Unknown category %r in dimension %d, answering from inner node',
                         x[split.dimension], split.dimension)
            return node
        node = node.children[c]
    return node


def classify(X, schema, root):
    '''
    Classify every row of X with the tree rooted at root.

    Parameters
    ----------
    X : array-like, shape=(n_points, n_dimensions) or (n_dimensions,)
    schema : FeatureSchema the tree was trained with
    root : Node

    Returns
    -------
    predictions : numpy array of int, shape=(n_points,)
    probabilities : numpy array of float, shape=(n_points, n_classes)
    '''
    X = np.asarray(X, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(1, -1)
    if X.ndim != 2 or X.shape[1] != len(schema):
        raise InvalidInputShape(
            f'query data of shape {X.shape} does not match {len(schema)} dimensions'
        )

    n_points = X.shape[0]
    predictions = np.empty(n_points, dtype=np.intp)
    probabilities = np.empty((n_points, root.n_classes), dtype=np.float64)
    for i in range(n_points):
        node = classify_point(X[i], root)
        predictions[i] = node.prediction
        probabilities[i] = node.probabilities
    return predictions, probabilities

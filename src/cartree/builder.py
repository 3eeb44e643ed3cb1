import logging
import numbers

import numpy as np

from .exceptions import InvalidHyperparameter, InvalidInputShape
from .impurity import class_counts, get_impurity
from .schema import FeatureSchema
from .splits import find_best_split
from .tree import Node, leaf_distribution

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_LEAF_SIZE = 20
DEFAULT_MINIMUM_GAIN_SPLIT = 1e-7


def check_hyperparameters(minimum_leaf_size, minimum_gain_split, impurity):
    if (isinstance(minimum_leaf_size, bool)
            or not isinstance(minimum_leaf_size, numbers.Integral)
            or minimum_leaf_size <= 0):
        raise InvalidHyperparameter(
            f'minimum_leaf_size must be a positive integer, got {minimum_leaf_size!r}'
        )
    if (isinstance(minimum_gain_split, bool)
            or not isinstance(minimum_gain_split, numbers.Real)
            or not (0.0 < minimum_gain_split < 1.0)):
        raise InvalidHyperparameter(
            f'minimum_gain_split must be a fraction in (0, 1), got {minimum_gain_split!r}'
        )
    get_impurity(impurity)


class TreeBuilder:
    '''
    Grows a classification tree over numeric and categorical dimensions.

    Attributes
    ----------
    minimum_leaf_size : int
        Smallest number of points allowed in any child of a split.
    minimum_gain_split : float
        Smallest impurity reduction for which a node is split.
    impurity : str
        'gini' or 'entropy'; one measure is used for the whole tree.
    '''

    def __init__(self,
                 minimum_leaf_size=DEFAULT_MINIMUM_LEAF_SIZE,
                 minimum_gain_split=DEFAULT_MINIMUM_GAIN_SPLIT,
                 impurity='gini'):
        check_hyperparameters(minimum_leaf_size, minimum_gain_split, impurity)
        self.minimum_leaf_size = int(minimum_leaf_size)
        self.minimum_gain_split = float(minimum_gain_split)
        self.impurity_name = impurity
        self._impurity = get_impurity(impurity)

    def build(self, X, schema, y, n_classes, weights=None):
        '''
        Build a tree and return its root Node.

        Parameters
        ----------
        X : array-like, shape=(n_points, n_dimensions)
        schema : FeatureSchema or None (all numeric)
        y : array-like of int, shape=(n_points,), values in [0, n_classes)
        n_classes : int
        weights : array-like, shape=(n_points,), optional
            Non-negative point weights, 1.0 each when omitted.
        '''
        X, schema, y, weights = self._check_inputs(X, schema, y, n_classes, weights)
        self._X = X
        self._y = y
        self._weights = weights
        self._schema = schema
        self._n_classes = int(n_classes)

        try:
            root = self._grow(np.arange(X.shape[0]))
        finally:
            del self._X, self._y, self._weights, self._schema

        logger.info(
            'Built decision tree: %d nodes, %d leaves, depth %d, %d points',
            root.count_nodes(), root.count_leaves(), root.get_depth(), X.shape[0],
        )
        return root

    # --------------------------------------------------------
    # Validation
    # --------------------------------------------------------

    def _check_inputs(self, X, schema, y, n_classes, weights):
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise InvalidInputShape(f'expected 2D data, got shape {X.shape}')
        n_points = X.shape[0]
        if n_points == 0:
            raise InvalidInputShape('no training points')
        if not np.all(np.isfinite(X)):
            raise InvalidInputShape('training data contains NaN or infinite values')

        if schema is None:
            schema = FeatureSchema.numeric(X.shape[1])
        schema.check(X)

        y = np.asarray(y)
        if y.ndim != 1 or y.shape[0] != n_points:
            raise InvalidInputShape(
                f'{y.shape[0] if y.ndim else 0} labels for {n_points} points'
            )
        if isinstance(n_classes, bool) or not isinstance(n_classes, numbers.Integral) \
                or n_classes <= 0:
            raise InvalidInputShape(f'n_classes must be a positive integer, got {n_classes!r}')
        if not np.issubdtype(y.dtype, np.integer):
            if not np.all(np.isfinite(y)) or np.any(y != np.floor(y)):
                raise InvalidInputShape('labels must be integers')
        if y.min() < 0 or y.max() >= n_classes:
            raise InvalidInputShape(
                f'labels must lie in [0, {n_classes}), got range [{y.min()}, {y.max()}]'
            )
        y = y.astype(np.intp)

        if weights is None:
            weights = np.ones(n_points, dtype=np.float64)
        else:
            weights = np.asarray(weights, dtype=np.float64).ravel()
            if weights.shape[0] != n_points:
                raise InvalidInputShape(f'{weights.shape[0]} weights for {n_points} points')
            if not np.all(np.isfinite(weights)) or np.any(weights < 0):
                raise InvalidInputShape('weights must be finite and non-negative')

        return X, schema, y, weights

    # --------------------------------------------------------
    # Tree construction
    # --------------------------------------------------------

    def _grow(self, indices):
        '''
        Grow the tree over the points in indices and return its root.

        Nodes are planned top-down from an explicit stack, then assembled
        bottom-up, so tree height is not limited by the interpreter's
        recursion limit.
        '''
        # plans[i] = (probabilities, n_points, split, child plan ids)
        plans = [None]
        stack = [(0, indices)]
        while stack:
            node_id, node_indices = stack.pop()
            probabilities, split, parts = self._plan_node(node_indices)
            child_ids = []
            if split is not None:
                for part in parts:
                    child_ids.append(len(plans))
                    if part.size == 0:
                        # category unseen in this subtree: inherit the parent's distribution
                        plans.append((probabilities, 0, None, ()))
                    else:
                        plans.append(None)
                        stack.append((child_ids[-1], part))
            plans[node_id] = (probabilities, node_indices.size, split, child_ids)

        # children are always planned after their parent
        built = [None] * len(plans)
        for i in range(len(plans) - 1, -1, -1):
            probabilities, n_points, split, child_ids = plans[i]
            built[i] = Node(probabilities, n_points, split=split,
                            children=[built[c] for c in child_ids])
        return built[0]

    def _plan_node(self, indices):
        '''
        Decide one node.

        Returns
        -------
        (probabilities, split, parts) where parts lists the point indices of
        each child, or (probabilities, None, None) for a leaf.
        '''
        y_node = self._y[indices]
        w_node = self._weights[indices]
        counts = class_counts(y_node, self._n_classes, w_node)
        probabilities = leaf_distribution(counts)
        n_points = indices.size

        if self._is_terminal(indices, y_node, counts):
            return probabilities, None, None

        X_node = self._X[indices]
        gain, split = find_best_split(
            X_node, y_node, w_node, self._schema, self._n_classes,
            self.minimum_leaf_size, self._impurity,
        )

        if split is None:
            logger.debug('No admissible split for %d points, making a leaf', n_points)
            return probabilities, None, None

        if gain < self.minimum_gain_split:
            logger.debug('Best gain %.3g below %.3g for %d points, making a leaf',
                         gain, self.minimum_gain_split, n_points)
            return probabilities, None, None

        child_of = split.partition(X_node[:, split.dimension])
        parts = [indices[child_of == c] for c in range(split.n_children)]
        if max(part.size for part in parts) == n_points:
            logger.debug('%r keeps all %d points in one child, making a leaf',
                         split, n_points)
            return probabilities, None, None

        return probabilities, split, parts

    def _is_terminal(self, indices, y_node, counts):
        '''
        Check whether a node should stop splitting.
        '''
        n_points = indices.size

        if n_points < 2 * self.minimum_leaf_size:
            return True

        if counts.sum() <= 0.0:
            logger.debug('Node with %d points has zero total weight, making a uniform leaf',
                         n_points)
            return True

        if np.unique(y_node).size == 1:
            return True

        X_node = self._X[indices]
        if np.all(X_node.max(axis=0) == X_node.min(axis=0)):
            return True

        return False


def build_tree(X, schema, y, n_classes, weights=None,
               minimum_leaf_size=DEFAULT_MINIMUM_LEAF_SIZE,
               minimum_gain_split=DEFAULT_MINIMUM_GAIN_SPLIT,
               impurity='gini'):
    '''
    Train a decision tree; see TreeBuilder.build().
    '''
    builder = TreeBuilder(minimum_leaf_size, minimum_gain_split, impurity)
    return builder.build(X, schema, y, n_classes, weights)

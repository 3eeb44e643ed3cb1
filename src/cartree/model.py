import logging

import numpy as np

from . import persistence
from .builder import DEFAULT_MINIMUM_GAIN_SPLIT, DEFAULT_MINIMUM_LEAF_SIZE, TreeBuilder
from .classify import classify
from .exceptions import InvalidInputShape, NotFittedError
from .schema import FeatureSchema
from .tree import NumericSplit

logger = logging.getLogger(__name__)


class DecisionTreeCART:
    '''
    CART classifier over numeric and categorical features.

        tree = DecisionTreeCART(minimum_leaf_size=5)
        tree.fit(X_train, y_train, schema=schema)
        y_pred = tree.predict(X_test)
        tree.print_tree()

    Numeric dimensions get binary threshold splits, categorical dimensions
    get one child per category. Point weights are supported at fit time.
    '''

    def __init__(self,
                 minimum_leaf_size=DEFAULT_MINIMUM_LEAF_SIZE,
                 minimum_gain_split=DEFAULT_MINIMUM_GAIN_SPLIT,
                 impurity='gini'):
        self.minimum_leaf_size = minimum_leaf_size
        self.minimum_gain_split = minimum_gain_split
        self.impurity = impurity
        self.n_classes_ = None
        self.schema_ = None
        self.root_ = None

    def fit(self, X, y=None, schema=None, weights=None):
        '''
        Train the classifier on labeled data.

        X : (N, d) matrix; categorical columns hold codes in [0, num_categories)
        y : (N,) labels in [0, K). If None, the last column of X is used as
            the labels and dropped from X (and from schema, if given).
        schema : FeatureSchema, defaults to all-numeric
        weights : (N,) non-negative point weights, optional
        '''
        builder = TreeBuilder(self.minimum_leaf_size, self.minimum_gain_split, self.impurity)

        X = np.asarray(X, dtype=np.float64)
        if y is None:
            if X.ndim != 2 or X.shape[1] < 2:
                raise InvalidInputShape(
                    f'cannot take labels from the last dimension of data shaped {X.shape}'
                )
            logger.info('Using the last dimension of training set as labels.')
            y = X[:, -1]
            X = X[:, :-1]
            if schema is not None and len(schema) == X.shape[1] + 1:
                schema = FeatureSchema(list(schema)[:-1])

        y = np.asarray(y)
        if y.size == 0:
            raise InvalidInputShape('no training labels')
        if y.dtype.kind not in 'biuf' or not np.all(np.isfinite(y)) or np.any(y != np.floor(y)):
            raise InvalidInputShape('labels must be finite integers')
        n_classes = int(np.max(y)) + 1

        if schema is None:
            schema = FeatureSchema.numeric(X.shape[1] if X.ndim == 2 else 0)

        root = builder.build(X, schema, y, n_classes, weights)

        self.n_classes_ = n_classes
        self.schema_ = schema
        self.root_ = root
        return self

    def classify(self, X):
        '''
        Predicted labels and class probabilities in one pass.
        '''
        self._check_fitted()
        return classify(X, self.schema_, self.root_)

    def predict(self, X):
        return self.classify(X)[0]

    def predict_proba(self, X):
        return self.classify(X)[1]

    def accuracy(self, X, y):
        '''
        Fraction of points whose predicted label equals y.
        '''
        y = np.asarray(y)
        y_pred = self.predict(X)
        if y.shape != y_pred.shape:
            raise InvalidInputShape(f'{y.size} labels for {y_pred.size} points')
        return float(np.mean(y_pred == y))

    def loss(self, X, y):
        '''
        Misclassification loss = 1 - accuracy
        '''
        return 1.0 - self.accuracy(X, y)

    def get_depth(self):
        self._check_fitted()
        return self.root_.get_depth()

    def save(self, path):
        self._check_fitted()
        persistence.save_model(path, self.root_, self.schema_)

    @classmethod
    def load(cls, path):
        '''
        Load a model written by save(). Hyperparameters are not stored and
        take their defaults.
        '''
        root, schema = persistence.load_model(path)
        model = cls()
        model.root_ = root
        model.schema_ = schema
        model.n_classes_ = root.n_classes
        return model

    def _check_fitted(self):
        if self.root_ is None:
            raise NotFittedError('This DecisionTreeCART instance is not fitted yet.')

    # ==================================================

    def print_tree(self):
        if self.root_ is None:
            print('Tree is empty')
            return

        print('--- CART TREE ---')

        lines = []
        stack = [(self.root_, '')]
        while stack:
            node, indent = stack.pop()
            if isinstance(node, str):
                lines.append(indent + node)
                continue
            if node.is_leaf:
                lines.append(indent + f'Leaf(label={node.prediction}, '
                                      f'p={node.probabilities[node.prediction]:.4f}, '
                                      f'samples={node.n_points})')
                continue
            split = node.split
            for c in range(len(node.children) - 1, -1, -1):
                if isinstance(split, NumericSplit):
                    op = '<' if c == 0 else '>='
                    rule = f'[Feature {split.dimension} {op} {split.threshold:.4f}]'
                else:
                    rule = f'[Feature {split.dimension} == {c}]'
                stack.append((node.children[c], indent + '  '))
                stack.append((rule, indent))

        print('\n'.join(lines))
        print('--- END ---')

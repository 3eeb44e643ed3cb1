import numpy as np

from .exceptions import ModelFormatError


def leaf_distribution(counts):
    '''
    Convert (weighted) class counts to a probability distribution.

    A node with zero total weight gets the uniform distribution.
    '''
    counts = np.asarray(counts, dtype=np.float64)
    total = counts.sum()
    if total <= 0.0:
        return np.full(counts.shape[0], 1.0 / counts.shape[0])
    return counts / total


class NumericSplit:
    '''
    Binary rule: child 0 if x[dimension] < threshold, child 1 otherwise.
    '''

    n_children = 2

    def __init__(self, dimension, threshold):
        self.dimension = int(dimension)
        self.threshold = float(threshold)

    def child_index(self, value):
        return 0 if value < self.threshold else 1

    def partition(self, column):
        '''
        Child index of every value in column.
        '''
        return np.where(column < self.threshold, 0, 1)

    def __eq__(self, other):
        if not isinstance(other, NumericSplit):
            return NotImplemented
        return self.dimension == other.dimension and self.threshold == other.threshold

    def __repr__(self):
        return f'NumericSplit(dimension={self.dimension}, threshold={self.threshold:.6g})'

    def to_dict(self):
        return {'type': 'numeric', 'dimension': self.dimension, 'threshold': self.threshold}


class CategoricalSplit:
    '''
    Multiway rule: one child per category, indexed by the category code.
    '''

    def __init__(self, dimension, num_categories):
        self.dimension = int(dimension)
        self.num_categories = int(num_categories)

    @property
    def n_children(self):
        return self.num_categories

    def child_index(self, value):
        '''
        Child index for a category code, or None when the code is outside
        the trained range.
        '''
        if not (0 <= value < self.num_categories) or value != int(value):
            return None
        return int(value)

    def partition(self, column):
        return column.astype(np.intp)

    def __eq__(self, other):
        if not isinstance(other, CategoricalSplit):
            return NotImplemented
        return (self.dimension == other.dimension
                and self.num_categories == other.num_categories)

    def __repr__(self):
        return f'CategoricalSplit(dimension={self.dimension}, num_categories={self.num_categories})'

    def to_dict(self):
        return {'type': 'categorical', 'dimension': self.dimension,
                'num_categories': self.num_categories}


def split_from_dict(data):
    kind = data.get('type')
    if kind == 'numeric':
        return NumericSplit(data['dimension'], data['threshold'])
    if kind == 'categorical':
        return CategoricalSplit(data['dimension'], data['num_categories'])
    raise ModelFormatError(f"Unknown split type '{kind}'")


class Node:
    '''
    A node of a trained tree.

    Every node keeps the class distribution of the training points that
    reached it. A node with split=None is a leaf; otherwise it owns
    split.n_children children in split order.
    '''

    def __init__(self, probabilities, n_points, split=None, children=()):
        self.probabilities = np.asarray(probabilities, dtype=np.float64)
        self.n_points = int(n_points)
        self.split = split
        self.children = tuple(children)
        # lowest class id wins ties
        self.prediction = int(np.argmax(self.probabilities))

        if split is None and self.children:
            raise ValueError('a leaf cannot have children')
        if split is not None and len(self.children) != split.n_children:
            raise ValueError(
                f'{split!r} needs {split.n_children} children, got {len(self.children)}'
            )

    @property
    def is_leaf(self):
        return self.split is None

    @property
    def n_classes(self):
        return self.probabilities.shape[0]

    def get_depth(self):
        '''
        Number of edges on the longest path from this node to a leaf.
        '''
        depth = 0
        stack = [(self, 0)]
        while stack:
            node, d = stack.pop()
            if node.is_leaf:
                depth = max(depth, d)
            else:
                stack.extend((child, d + 1) for child in node.children)
        return depth

    def iter_nodes(self):
        '''
        All nodes of the subtree in preorder.
        '''
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_leaves(self):
        return (node for node in self.iter_nodes() if node.is_leaf)

    def count_nodes(self):
        return sum(1 for _ in self.iter_nodes())

    def count_leaves(self):
        return sum(1 for _ in self.iter_leaves())

    def _same_local(self, other):
        return (self.n_points == other.n_points
                and self.split == other.split
                and len(self.children) == len(other.children)
                and np.array_equal(self.probabilities, other.probabilities))

    def __eq__(self, other):
        if not isinstance(other, Node):
            return NotImplemented
        stack = [(self, other)]
        while stack:
            a, b = stack.pop()
            if not a._same_local(b):
                return False
            stack.extend(zip(a.children, b.children))
        return True

    def __str__(self):
        if self.is_leaf:
            return f'Leaf(prediction={self.prediction}, samples={self.n_points})'
        return f'Node({self.split!r}, samples={self.n_points})'

    def __repr__(self):
        return self.__str__()

    def to_records(self):
        '''
        Flatten the subtree into a list of node records in preorder.

        Children are referenced by their position in the list, so the
        records nest only one level deep however tall the tree is.
        '''
        nodes = list(self.iter_nodes())
        node_id = {id(node): i for i, node in enumerate(nodes)}
        records = []
        for node in nodes:
            record = {
                'probabilities': node.probabilities.tolist(),
                'n_points': node.n_points,
            }
            if not node.is_leaf:
                record['split'] = node.split.to_dict()
                record['children'] = [node_id[id(child)] for child in node.children]
            records.append(record)
        return records

    @classmethod
    def from_records(cls, records):
        '''
        Inverse of to_records(); returns the root node.
        '''
        if not isinstance(records, list) or not records:
            raise ModelFormatError('tree records must be a non-empty list')

        n_records = len(records)
        referenced = [False] * n_records
        for i, record in enumerate(records):
            for c in record.get('children', ()):
                if not isinstance(c, int) or not (i < c < n_records) or referenced[c]:
                    raise ModelFormatError(f'node {i} has an invalid child reference {c!r}')
                referenced[c] = True
        if not all(referenced[1:]):
            raise ModelFormatError('tree records contain unreachable nodes')

        # children always follow their parent, so build back to front
        built = [None] * n_records
        for i in range(n_records - 1, -1, -1):
            record = records[i]
            split = record.get('split')
            if split is None:
                if record.get('children'):
                    raise ModelFormatError(f'leaf {i} has children')
                built[i] = cls(record['probabilities'], record['n_points'])
            else:
                built[i] = cls(
                    record['probabilities'],
                    record['n_points'],
                    split=split_from_dict(split),
                    children=[built[c] for c in record['children']],
                )
        return built[0]

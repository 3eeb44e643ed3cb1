import numpy as np

from .exceptions import InvalidInputShape

NUMERIC = 'numeric'
CATEGORICAL = 'categorical'


class Dimension:
    '''
    Descriptor of one feature dimension.

    num_categories is 0 for numeric dimensions and at least 2 for
    categorical ones. categories optionally lists the raw tokens, in code
    order, that were mapped to 0..len(categories)-1 by FeatureSchema.infer().
    '''

    def __init__(self, kind, num_categories=0, categories=None):
        if kind == NUMERIC:
            if num_categories != 0:
                raise InvalidInputShape('numeric dimensions have no categories')
            if categories is not None:
                raise InvalidInputShape('numeric dimensions have no category tokens')
        elif kind == CATEGORICAL:
            if int(num_categories) < 2:
                raise InvalidInputShape(
                    f'categorical dimensions need at least 2 categories, got {num_categories}'
                )
        else:
            raise InvalidInputShape(f"Unknown dimension kind '{kind}'")

        self.kind = kind
        self.num_categories = int(num_categories)
        self.categories = tuple(categories) if categories is not None else None

    @property
    def is_categorical(self):
        return self.kind == CATEGORICAL

    def __eq__(self, other):
        if not isinstance(other, Dimension):
            return NotImplemented
        return (self.kind == other.kind
                and self.num_categories == other.num_categories
                and self.categories == other.categories)

    def __repr__(self):
        if self.is_categorical:
            return f'Dimension(categorical, num_categories={self.num_categories})'
        return 'Dimension(numeric)'


class FeatureSchema:
    '''
    Ordered, immutable per-dimension metadata for a dataset.

    Data matrices presented against a schema have shape
    (n_points, len(schema)); categorical columns hold integer codes in
    [0, num_categories).
    '''

    def __init__(self, dimensions):
        self._dimensions = tuple(dimensions)
        for d in self._dimensions:
            if not isinstance(d, Dimension):
                raise InvalidInputShape(f'expected Dimension, got {type(d).__name__}')

    @classmethod
    def numeric(cls, n_dimensions):
        return cls(Dimension(NUMERIC) for _ in range(n_dimensions))

    @classmethod
    def from_types(cls, types, X):
        '''
        Build a schema from per-dimension kinds ('numeric' / 'categorical')
        and the training matrix, which supplies the category counts.
        '''
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2 or X.shape[1] != len(types):
            raise InvalidInputShape(
                f'{len(types)} dimension types given for data of shape {X.shape}'
            )

        dimensions = []
        for j, kind in enumerate(types):
            if kind == CATEGORICAL:
                col = X[:, j][np.isfinite(X[:, j])]
                n_cat = int(col.max()) + 1 if col.size else 0
                dimensions.append(Dimension(CATEGORICAL, max(n_cat, 2)))
            else:
                dimensions.append(Dimension(kind))
        schema = cls(dimensions)
        schema.check(X)
        return schema

    @classmethod
    def infer(cls, X_raw):
        '''
        Infer a schema from raw (possibly string) data.

        Any column whose values do not all parse as floats is categorical;
        its distinct tokens get codes in first-seen order.

        Returns
        -------
        (FeatureSchema, numpy array of float64 with the encoded data)
        '''
        X_raw = np.asarray(X_raw, dtype=object)
        if X_raw.ndim != 2:
            raise InvalidInputShape(f'expected 2D data, got shape {X_raw.shape}')

        n_points, n_dims = X_raw.shape
        encoded = np.empty((n_points, n_dims), dtype=np.float64)
        dimensions = []

        for j in range(n_dims):
            col = X_raw[:, j]
            try:
                encoded[:, j] = [float(v) for v in col]
                dimensions.append(Dimension(NUMERIC))
                continue
            except (TypeError, ValueError):
                pass

            mapping = {}
            for i, v in enumerate(col):
                token = str(v)
                if token not in mapping:
                    mapping[token] = len(mapping)
                encoded[i, j] = mapping[token]
            tokens = list(mapping)
            # a single observed token still needs a second, never-seen slot
            dimensions.append(Dimension(CATEGORICAL, max(len(tokens), 2), tokens))

        return cls(dimensions), encoded

    def transform(self, X_raw):
        '''
        Encode raw query data with the token mappings learned by infer().

        Unseen tokens are encoded as num_categories, which is out of the
        trained range and handled by the classifier's unknown-category rule.
        '''
        X_raw = np.asarray(X_raw, dtype=object)
        if X_raw.ndim == 1:
            X_raw = X_raw.reshape(1, -1)
        if X_raw.ndim != 2 or X_raw.shape[1] != len(self):
            raise InvalidInputShape(
                f'data of shape {X_raw.shape} does not match {len(self)} dimensions'
            )

        encoded = np.empty(X_raw.shape, dtype=np.float64)
        for j, d in enumerate(self._dimensions):
            col = X_raw[:, j]
            if d.categories is None:
                encoded[:, j] = [float(v) for v in col]
                continue
            mapping = {token: code for code, token in enumerate(d.categories)}
            encoded[:, j] = [mapping.get(str(v), d.num_categories) for v in col]
        return encoded

    def check(self, X):
        '''
        Validate a training matrix against this schema.
        '''
        if X.ndim != 2:
            raise InvalidInputShape(f'expected 2D data, got shape {X.shape}')
        if X.shape[1] != len(self):
            raise InvalidInputShape(
                f'data has {X.shape[1]} dimensions, schema has {len(self)}'
            )
        for j, d in enumerate(self._dimensions):
            if not d.is_categorical:
                continue
            col = X[:, j]
            bad = ~np.isfinite(col) | (col != np.floor(col)) | (col < 0) | (col >= d.num_categories)
            if np.any(bad):
                raise InvalidInputShape(
                    f'dimension {j}: categorical codes must be integers in '
                    f'[0, {d.num_categories}), got {col[bad][0]!r}'
                )

    def is_categorical(self, j):
        return self._dimensions[j].is_categorical

    def num_categories(self, j):
        return self._dimensions[j].num_categories

    def __len__(self):
        return len(self._dimensions)

    def __getitem__(self, j):
        return self._dimensions[j]

    def __iter__(self):
        return iter(self._dimensions)

    def __eq__(self, other):
        if not isinstance(other, FeatureSchema):
            return NotImplemented
        return self._dimensions == other._dimensions

    def __repr__(self):
        n_cat = sum(d.is_categorical for d in self._dimensions)
        return f'FeatureSchema({len(self)} dimensions, {n_cat} categorical)'

    def to_dict(self):
        return {
            'dimensions': [
                {
                    'kind': d.kind,
                    'num_categories': d.num_categories,
                    'categories': list(d.categories) if d.categories is not None else None,
                }
                for d in self._dimensions
            ]
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            Dimension(d['kind'], d['num_categories'], d.get('categories'))
            for d in data['dimensions']
        )

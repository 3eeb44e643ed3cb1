'''
cartree: CART decision trees over numeric and categorical features.
'''
from .builder import TreeBuilder, build_tree
from .classify import classify, classify_point
from .exceptions import (
    CartreeError,
    InvalidHyperparameter,
    InvalidInputShape,
    ModelFormatError,
    NotFittedError,
)
from .model import DecisionTreeCART
from .persistence import deserialize, load_model, save_model, serialize
from .schema import CATEGORICAL, NUMERIC, Dimension, FeatureSchema
from .tree import CategoricalSplit, Node, NumericSplit

__version__ = '0.1.0'

__all__ = [
    'CATEGORICAL',
    'NUMERIC',
    'CartreeError',
    'CategoricalSplit',
    'DecisionTreeCART',
    'Dimension',
    'FeatureSchema',
    'InvalidHyperparameter',
    'InvalidInputShape',
    'ModelFormatError',
    'Node',
    'NotFittedError',
    'NumericSplit',
    'TreeBuilder',
    'build_tree',
    'classify',
    'classify_point',
    'deserialize',
    'load_model',
    'save_model',
    'serialize',
]

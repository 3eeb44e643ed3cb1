class CartreeError(Exception):
    '''
    Base class for errors raised by cartree.
    '''


class InvalidHyperparameter(CartreeError, ValueError):
    '''
    A training hyperparameter is outside its allowed range.
    '''


class InvalidInputShape(CartreeError, ValueError):
    '''
    Data, labels, weights or schema do not agree with each other.
    '''


class ModelFormatError(CartreeError, ValueError):
    '''
    A serialized model could not be decoded.
    '''


class NotFittedError(CartreeError, AttributeError):
    '''
    The estimator was used before fit() or load().
    '''

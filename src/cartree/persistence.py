'''
Model artifact I/O.

A model is the pair (tree, schema), stored as a UTF-8 JSON document:

    {"format": "cartree-model", "version": 1,
     "schema": {...}, "tree": [{...}, ...]}

The tree is a flat preorder list of node records whose children are list
positions (see Node.to_records).

Keys are sorted and floats written with repr precision, so identical trees
serialize to identical bytes and load back exactly.
'''
import json

from .exceptions import ModelFormatError
from .schema import FeatureSchema
from .tree import Node

MODEL_FORMAT = 'cartree-model'
MODEL_VERSION = 1


def serialize(root, schema):
    package = {
        'format': MODEL_FORMAT,
        'version': MODEL_VERSION,
        'schema': schema.to_dict(),
        'tree': root.to_records(),
    }
    return json.dumps(package, sort_keys=True, separators=(',', ':')).encode('utf-8')


def deserialize(data):
    '''
    Inverse of serialize(); returns (root, schema).
    '''
    try:
        package = json.loads(data.decode('utf-8') if isinstance(data, bytes) else data)
    except (UnicodeDecodeError, ValueError) as e:
        raise ModelFormatError(f'not a cartree model: {e}') from e

    if not isinstance(package, dict) or package.get('format') != MODEL_FORMAT:
        raise ModelFormatError('not a cartree model: missing format tag')
    if package.get('version') != MODEL_VERSION:
        raise ModelFormatError(f"unsupported model version {package.get('version')!r}")

    try:
        schema = FeatureSchema.from_dict(package['schema'])
        root = Node.from_records(package['tree'])
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ModelFormatError(f'corrupt cartree model: {e}') from e
    return root, schema


def save_model(path, root, schema):
    with open(path, 'wb') as f:
        f.write(serialize(root, schema))


def load_model(path):
    with open(path, 'rb') as f:
        return deserialize(f.read())

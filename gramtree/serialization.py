"""
Versioned binary encoding of n-gram trees.

Layout (little-endian)::

    header   struct '<4sHHHQQ'  magic b'NGTR', format version, min_gram,
                                max_gram, total_gram_count, node_count
    body     4 x node_count uint32: chars, frequencies, first_child, child_count
    trailer  uint32 CRC-32 of header + body
"""
import logging
import os
import struct
import zlib

import numpy as np

from .errors import ConfigError, FormatError, ResourceError
from .models import MAX_FREQUENCY, GramTree
from .tokenization import validate_gram_bounds

logger = logging.getLogger(__name__)

MAGIC = b'NGTR'
FORMAT_VERSION = 1

_HEADER = struct.Struct('<4sHHHQQ')
_TRAILER = struct.Struct('<I')
_ARRAY_DTYPE = np.dtype('<u4')
_ARRAYS = ('chars', 'frequencies', 'first_child', 'child_count')


def dumps(tree: GramTree) -> bytes:
    """Encode a tree into a self-describing blob."""
    header = _HEADER.pack(MAGIC, FORMAT_VERSION, tree.min_gram, tree.max_gram,
                          tree.total_gram_count, tree.node_count)
    body = b''.join(np.ascontiguousarray(getattr(tree, name), dtype=_ARRAY_DTYPE).tobytes()
                    for name in _ARRAYS)
    payload = header + body
    return payload + _TRAILER.pack(zlib.crc32(payload))


def loads(blob: bytes) -> GramTree:
    """Decode a blob produced by ``dumps``. Raises ``FormatError`` on any mismatch."""
    blob = bytes(blob)
    if len(blob) < _HEADER.size + _TRAILER.size:
        raise FormatError(f"Blob too short ({len(blob)} bytes)")

    magic, version, min_gram, max_gram, total_gram_count, node_count = _HEADER.unpack_from(blob, 0)
    if magic != MAGIC:
        raise FormatError(f"Not an n-gram tree blob (magic {magic!r})")
    if version != FORMAT_VERSION:
        raise FormatError(f"Unsupported format version {version} (expected {FORMAT_VERSION})")
    if node_count < 1:
        raise FormatError("A tree needs at least a root node")

    expected = _HEADER.size + 4 * node_count * _ARRAY_DTYPE.itemsize + _TRAILER.size
    if len(blob) != expected:
        raise FormatError(f"Blob size mismatch: {len(blob)} bytes for {node_count} nodes (expected {expected})")

    (checksum,) = _TRAILER.unpack_from(blob, len(blob) - _TRAILER.size)
    if zlib.crc32(blob[:-_TRAILER.size]) != checksum:
        raise FormatError("Checksum mismatch, blob is corrupt")

    try:
        validate_gram_bounds(min_gram, max_gram)
    except ConfigError as e:
        raise FormatError(f"Invalid gram bounds in blob: {e}") from e

    arrays = {}
    offset = _HEADER.size
    for name in _ARRAYS:
        arrays[name] = np.frombuffer(blob, dtype=_ARRAY_DTYPE, count=node_count, offset=offset)
        offset += node_count * _ARRAY_DTYPE.itemsize

    _check_structure(arrays, node_count)

    return GramTree(min_gram=min_gram, max_gram=max_gram,
                    total_gram_count=total_gram_count, **arrays)


def _check_structure(arrays, node_count: int):
    """Verify that the arrays describe a breadth-first tree with sorted, unique siblings."""
    chars = arrays['chars'].astype(np.int64)
    frequencies = arrays['frequencies'].astype(np.int64)
    first = arrays['first_child'].astype(np.int64)
    count = arrays['child_count'].astype(np.int64)

    if frequencies.max() > MAX_FREQUENCY:
        raise FormatError("Frequency out of range")
    if count.sum() != node_count - 1:
        raise FormatError("Child counts do not account for every node")

    expected_first = 1 + np.cumsum(count) - count
    if not np.array_equal(first, expected_first):
        raise FormatError("Children are not laid out in breadth-first order")
    indices = np.arange(node_count)
    if np.any((count > 0) & (first <= indices)):
        raise FormatError("A node points to itself or to an ancestor")

    if node_count > 2:
        parents = np.repeat(indices, count)
        siblings = parents[1:] == parents[:-1]
        if np.any(np.diff(chars[1:])[siblings] <= 0):
            raise FormatError("Sibling characters are not strictly increasing")


def save_tree(tree: GramTree, path: str):
    """Write a tree blob to ``path``."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'wb') as f:
        f.write(dumps(tree))
    logger.debug(f"Saved {tree!r} to {path}")


def load_tree(path: str) -> GramTree:
    """Read a tree blob from ``path``. Raises ``ResourceError`` or ``FormatError``."""
    try:
        with open(path, 'rb') as f:
            blob = f.read()
    except OSError as e:
        raise ResourceError(f"Unable to read n-gram tree {path}: {e}") from e
    try:
        return loads(blob)
    except FormatError as e:
        raise FormatError(f"{path}: {e}") from e

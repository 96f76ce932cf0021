"""Merkle tree over 32-byte hashes."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import zip_longest
from typing import Iterator, List, Optional

from .crypto.hashes import hash256


@dataclass(eq=False)
class TreeNode:
    """A node of a Merkle tree."""

    hash: bytes
    parent: Optional[TreeNode] = field(default=None, repr=False)
    left: Optional[TreeNode] = None
    right: Optional[TreeNode] = None

    def is_leaf(self) -> bool:
        """Return True if the node has no children."""
        return self.left is None and self.right is None

    def is_root(self) -> bool:
        """Return True if the node has no parent."""
        return self.parent is None


@dataclass
class MerkleTree:
    """A Merkle tree with its root and depth."""

    root: TreeNode
    depth: int


def _parents(level: List[TreeNode]) -> Iterator[TreeNode]:
    nodes = iter(level)
    for left, right in zip_longest(nodes, nodes):
        pair = right if right is not None else left
        parent = TreeNode(hash256(left.hash + pair.hash), left=left, right=pair)
        left.parent = parent
        if right is not None:
            right.parent = parent
        yield parent


def merkle_tree(*hashes: bytes) -> Optional[MerkleTree]:
    """Build a Merkle tree over ``hashes``; return None when there are none."""
    if not hashes:
        return None

    level = [TreeNode(bytes(h)) for h in hashes]
    while len(level) > 1:
        level = list(_parents(level))

    root = level[0]
    depth = 1
    node = root
    while node.left is not None:
        depth += 1
        node = node.left
    return MerkleTree(root=root, depth=depth)
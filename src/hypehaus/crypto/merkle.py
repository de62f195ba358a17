"""Merkle tree with sorted-pair hashing.

Uses keccak-256 as the hash function, so roots and proofs are
interchangeable with those of merkletreejs built as
``new MerkleTree(addresses.map(keccak256), keccak256, { sortPairs: true })``.

Leaves stay in insertion order. Every pair of nodes is sorted before it
is hashed, so a proof is just the ordered list of sibling hashes; no
left/right position is needed, and verification agrees with
construction wherever the leaf sits.

An odd node at the end of a level is promoted unchanged to the next
level.

A leaf is the hash of a 20-byte address. Inner nodes hash 64 bytes, so
no address can be mistaken for an inner node.

Hashes are exchanged as 0x-prefixed lowercase hex strings of 32 bytes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from web3 import Web3

from hypehaus.models.sale import ZERO_ROOT
from hypehaus.models.wallet import address_bytes

HASH_SIZE = 32
_ZERO = bytes(HASH_SIZE)


@dataclass(frozen=True)
class MerkleProof:
    """An inclusion proof for a single leaf."""
    leaf_hash: str
    path: list[str]
    root: str


class MerkleTree:
    """A deterministic sorted-pair Merkle tree.

    Usage:
        tree = MerkleTree()
        tree.add_wallet("0x70997970c51812dc3a010c7d01b50e0d17dc79c8")
        tree.add_leaf("0x5931b4ed56ace4c46b68524cb5bcbf4195f1bbaacbe5228fbd090546c88dd229")
        root = tree.compute_root()
        proof = tree.wallet_proof("0x70997970c51812dc3a010c7d01b50e0d17dc79c8")
    """

    def __init__(self) -> None:
        self._leaves: list[bytes] = []
        self._tree: list[list[bytes]] = []
        self._computed = False

    @classmethod
    def from_wallets(cls, wallets: Sequence[str]) -> MerkleTree:
        tree = cls()
        for wallet in wallets:
            tree.add_wallet(wallet)
        tree.compute_root()
        return tree

    def add_leaf(self, leaf_hash: str) -> None:
        """Add a pre-hashed leaf. Must be called before compute_root."""
        if self._computed:
            raise RuntimeError("Tree already computed. Create a new tree.")
        leaf = parse_hash(leaf_hash)
        if leaf is None:
            raise ValueError(f"Leaf must be a 32-byte hex hash: {leaf_hash!r}")
        self._leaves.append(leaf)

    def add_wallet(self, wallet: str) -> None:
        """Add an address. Raises ValueError if it is not a 20-byte address."""
        self.add_leaf(wallet_leaf(wallet))

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    def compute_root(self) -> str:
        """Compute the Merkle root.

        An empty tree yields the zero root, which verifies nothing.
        """
        if not self._leaves:
            self._tree = [[]]
            self._computed = True
            return ZERO_ROOT

        current_level = list(self._leaves)
        self._tree = [current_level]

        while len(current_level) > 1:
            next_level: list[bytes] = []
            for i in range(0, len(current_level), 2):
                if i + 1 < len(current_level):
                    next_level.append(_hash_pair(current_level[i], current_level[i + 1]))
                else:
                    next_level.append(current_level[i])
            self._tree.append(next_level)
            current_level = next_level

        self._computed = True
        return _to_hex(current_level[0])

    def inclusion_proof(self, leaf_hash: str) -> Optional[MerkleProof]:
        """Generate an inclusion proof for a leaf.

        Returns None if the leaf is not in the tree.
        Must call compute_root first.
        """
        if not self._computed:
            raise RuntimeError("Must call compute_root before generating proofs")

        leaf = parse_hash(leaf_hash)
        leaves = self._tree[0]
        if leaf is None or leaf not in leaves:
            return None

        current_idx = leaves.index(leaf)
        path: list[str] = []
        for level in self._tree[:-1]:
            sibling_idx = current_idx ^ 1
            if sibling_idx < len(level):
                path.append(_to_hex(level[sibling_idx]))
            current_idx //= 2

        return MerkleProof(
            leaf_hash=_to_hex(leaf),
            path=path,
            root=_to_hex(self._tree[-1][0]),
        )

    def wallet_proof(self, wallet: str) -> Optional[list[str]]:
        """Sibling path for a wallet, or None if it is not a leaf."""
        try:
            leaf = wallet_leaf(wallet)
        except ValueError:
            return None
        proof = self.inclusion_proof(leaf)
        return None if proof is None else proof.path


def keccak(data: bytes) -> bytes:
    return bytes(Web3.keccak(data))


def wallet_leaf(wallet: str) -> str:
    """The leaf committed for a wallet: keccak-256 of its 20 address bytes.

    Raises ValueError if wallet is not a 20-byte hex address.
    """
    return _to_hex(keccak(address_bytes(wallet)))


def verify_proof(
    leaf_hash: Union[str, bytes],
    proof: Sequence[str],
    root: str,
) -> bool:
    """Fold a proof into a candidate root and compare.

    Never raises. A malformed leaf, proof element or root, or a zero
    root, returns False.
    """
    expected = parse_hash(root)
    if expected is None or expected == _ZERO:
        return False
    node = parse_hash(leaf_hash)
    if node is None:
        return False
    if isinstance(proof, (str, bytes)) or not isinstance(proof, Sequence):
        return False
    for element in proof:
        sibling = parse_hash(element)
        if sibling is None:
            return False
        node = _hash_pair(node, sibling)
    return node == expected


def parse_hash(value: Union[str, bytes, None]) -> Optional[bytes]:
    """Parse a 32-byte hash from raw bytes or 0x-hex. None if malformed."""
    if isinstance(value, bytes):
        return value if len(value) == HASH_SIZE else None
    if not isinstance(value, str):
        return None
    body = value.strip()
    if body[:2].lower() == "0x":
        body = body[2:]
    if len(body) != HASH_SIZE * 2:
        return None
    try:
        return bytes.fromhex(body)
    except ValueError:
        return None


def _to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def _hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two nodes together in sorted order."""
    if b < a:
        a, b = b, a
    return keccak(a + b)

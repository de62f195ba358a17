"""Cryptographic primitives: Merkle trees and allowlist verification."""

from hypehaus.crypto.merkle import MerkleTree, verify_proof, wallet_leaf
from hypehaus.crypto.allowlist import AllowlistVerifier

__all__ = ["MerkleTree", "verify_proof", "wallet_leaf", "AllowlistVerifier"]

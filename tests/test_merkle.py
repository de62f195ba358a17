"""Tests for the sorted-pair Merkle tree and allowlist verification."""

import pytest

from hypehaus.crypto.allowlist import AllowlistVerifier
from hypehaus.crypto.merkle import MerkleTree, keccak, parse_hash, verify_proof, wallet_leaf
from hypehaus.models.sale import ZERO_ROOT, Tier


WALLETS = [
    "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc",
    "0x90f79bf6eb2c4f870365e785982e1f101e93b906",
    "0x15d34aaf54267db7d7c367839aaf71a00a2c6a65",
    "0x9965507d1a55bcc2695c58ba16fb37d819b0a4dc",
    "0x976ea74026e726554db657fa54763abd0c3a0aa9",
    "0x14dc79964da2c08b23698b3d3cc7ca32193d9955",
    "0x23618e81e3f5cdf7f54c3d65f7fbc0abf5b21e8f",
]
OUTSIDER = "0xa0ee7a142d267c1f36714e4a8f75612f20a79720"


class TestMerkleTree:
    def test_empty_tree_has_zero_root(self) -> None:
        tree = MerkleTree()
        assert tree.compute_root() == ZERO_ROOT

    def test_single_leaf_root_is_leaf(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS[:1])
        assert tree.compute_root() == wallet_leaf(WALLETS[0])
        assert tree.wallet_proof(WALLETS[0]) == []

    def test_deterministic(self) -> None:
        root1 = MerkleTree.from_wallets(WALLETS).compute_root()
        root2 = MerkleTree.from_wallets(list(WALLETS)).compute_root()
        assert root1 == root2

    def test_two_leaf_root_ignores_order(self) -> None:
        root1 = MerkleTree.from_wallets(WALLETS[:2]).compute_root()
        root2 = MerkleTree.from_wallets(WALLETS[1::-1]).compute_root()
        assert root1 == root2

    def test_different_sets_different_roots(self) -> None:
        root1 = MerkleTree.from_wallets(WALLETS[:2]).compute_root()
        root2 = MerkleTree.from_wallets(WALLETS[1:3]).compute_root()
        assert root1 != root2

    def test_root_is_32_byte_hex(self) -> None:
        root = MerkleTree.from_wallets(WALLETS).compute_root()
        assert root.startswith("0x")
        assert len(parse_hash(root)) == 32

    def test_two_leaf_root_is_sorted_pair_hash(self) -> None:
        a = parse_hash(wallet_leaf(WALLETS[0]))
        b = parse_hash(wallet_leaf(WALLETS[1]))
        expected = "0x" + keccak(min(a, b) + max(a, b)).hex()
        assert MerkleTree.from_wallets(WALLETS[:2]).compute_root() == expected

    def test_odd_leaf_promoted_in_insertion_order(self) -> None:
        """Layout matches merkletreejs with sortPairs: leaves unsorted, odd node carried up."""
        l0, l1, l2 = (parse_hash(wallet_leaf(w)) for w in WALLETS[:3])
        pair = keccak(min(l0, l1) + max(l0, l1))
        root = keccak(min(pair, l2) + max(pair, l2))
        tree = MerkleTree.from_wallets(WALLETS[:3])
        assert tree.compute_root() == "0x" + root.hex()
        assert tree.wallet_proof(WALLETS[2]) == ["0x" + pair.hex()]
        assert tree.wallet_proof(WALLETS[0]) == ["0x" + l1.hex(), "0x" + l2.hex()]

    def test_missing_wallet_no_proof(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS[:3])
        assert tree.wallet_proof(OUTSIDER) is None

    def test_inclusion_proof_carries_root(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS[:3])
        proof = tree.inclusion_proof(wallet_leaf(WALLETS[1]))
        assert proof is not None
        assert proof.leaf_hash == wallet_leaf(WALLETS[1])
        assert proof.root == tree.compute_root()

    def test_cannot_add_after_compute(self) -> None:
        tree = MerkleTree()
        tree.add_wallet(WALLETS[0])
        tree.compute_root()
        with pytest.raises(RuntimeError):
            tree.add_wallet(WALLETS[1])

    def test_proof_before_compute_fails(self) -> None:
        tree = MerkleTree()
        tree.add_wallet(WALLETS[0])
        with pytest.raises(RuntimeError):
            tree.inclusion_proof(wallet_leaf(WALLETS[0]))

    def test_add_malformed_leaf_rejected(self) -> None:
        with pytest.raises(ValueError):
            MerkleTree().add_leaf("0x1234")

    def test_wallet_case_does_not_change_leaf(self) -> None:
        assert wallet_leaf(WALLETS[0].upper().replace("0X", "0x")) == wallet_leaf(WALLETS[0])

    def test_non_address_cannot_be_added(self) -> None:
        tree = MerkleTree()
        for wallet in ("alice", "0x1234", "0x" + "ab" * 64):
            with pytest.raises(ValueError):
                tree.add_wallet(wallet)
        assert tree.leaf_count == 0


class TestKeccak:
    def test_known_digest(self) -> None:
        assert keccak(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_leaf_is_keccak_of_raw_address(self) -> None:
        expected = "0x" + keccak(bytes.fromhex(WALLETS[0][2:])).hex()
        assert wallet_leaf(WALLETS[0]) == expected

    def test_checksummed_address_same_leaf(self) -> None:
        assert wallet_leaf("0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC") == wallet_leaf(WALLETS[0])


class TestInnerNodeForgery:
    """A concatenation of two nodes must never pass as a member."""

    def test_pair_preimage_rejected_against_two_leaf_root(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS[:2])
        a, b = sorted(parse_hash(wallet_leaf(w)) for w in WALLETS[:2])
        forged = "0x" + (a + b).hex()
        with pytest.raises(ValueError):
            wallet_leaf(forged)
        assert tree.wallet_proof(forged) is None
        assert not AllowlistVerifier.verify(Tier.ALPHA, tree.compute_root(), [], forged)

    def test_inner_node_with_short_proof_rejected(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS[:4])
        root = tree.compute_root()
        l0, l1, l2, l3 = (parse_hash(wallet_leaf(w)) for w in WALLETS[:4])
        left = min(l0, l1) + max(l0, l1)
        right_node = keccak(min(l2, l3) + max(l2, l3))
        forged = "0x" + left.hex()
        assert verify_proof(keccak(left), ["0x" + right_node.hex()], root)
        assert not AllowlistVerifier.verify(Tier.ALPHA, root, ["0x" + right_node.hex()], forged)


class TestVerifyProof:
    @pytest.mark.parametrize("size", range(1, len(WALLETS) + 1))
    def test_every_member_verifies(self, size: int) -> None:
        members = WALLETS[:size]
        tree = MerkleTree.from_wallets(members)
        root = tree.compute_root()
        for wallet in members:
            assert verify_proof(wallet_leaf(wallet), tree.wallet_proof(wallet), root)

    @pytest.mark.parametrize("size", range(1, len(WALLETS) + 1))
    def test_outsider_with_copied_proof_fails(self, size: int) -> None:
        members = WALLETS[:size]
        tree = MerkleTree.from_wallets(members)
        root = tree.compute_root()
        for wallet in members:
            assert not verify_proof(wallet_leaf(OUTSIDER), tree.wallet_proof(wallet), root)

    def test_zero_root_never_verifies(self) -> None:
        assert not verify_proof(wallet_leaf(WALLETS[0]), [], ZERO_ROOT)

    def test_proof_against_other_root_fails(self) -> None:
        tree_a = MerkleTree.from_wallets(WALLETS[:2])
        tree_b = MerkleTree.from_wallets(WALLETS[2:4])
        proof = tree_a.wallet_proof(WALLETS[0])
        assert not verify_proof(wallet_leaf(WALLETS[0]), proof, tree_b.compute_root())

    def test_truncated_proof_fails(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS)
        proof = tree.wallet_proof(WALLETS[0])
        assert len(proof) > 1
        assert not verify_proof(wallet_leaf(WALLETS[0]), proof[:-1], tree.compute_root())

    def test_malformed_shapes_return_false(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS[:4])
        root = tree.compute_root()
        leaf = wallet_leaf(WALLETS[0])
        proof = tree.wallet_proof(WALLETS[0])
        assert not verify_proof(leaf, ["0xdeadbeef"] + proof[1:], root)
        assert not verify_proof(leaf, ["not hex at all"], root)
        assert not verify_proof(leaf, [None], root)
        assert not verify_proof(leaf, "".join(proof), root)
        assert not verify_proof(leaf, proof, "0x1234")
        assert not verify_proof("garbage", proof, root)


class TestAllowlistVerifier:
    def test_member_verifies_for_tier(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS[:3])
        root = tree.compute_root()
        assert AllowlistVerifier.verify(Tier.ALPHA, root, tree.wallet_proof(WALLETS[2]), WALLETS[2])

    def test_blank_wallet_returns_false(self) -> None:
        tree = MerkleTree.from_wallets(WALLETS[:3])
        assert not AllowlistVerifier.verify(Tier.ALPHA, tree.compute_root(), [], "  ")

    def test_unset_root_closes_tier(self) -> None:
        assert not AllowlistVerifier.verify(Tier.HYPEMEMBER, ZERO_ROOT, [], WALLETS[0])

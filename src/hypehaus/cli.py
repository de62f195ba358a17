"""HYPEHAUS CLI: command-line interface for the issuance ledger.

Usage:
    python -m hypehaus.cli deploy --deployer 0xdep... --payout 0xteam...
    python -m hypehaus.cli status
    python -m hypehaus.cli --as 0xdep... set-sale community
    python -m hypehaus.cli allowlist-root --wallets alphas.txt
    python -m hypehaus.cli --as 0xdep... set-root --tier alpha --root 0x...
    python -m hypehaus.cli --as 0xdep... set-limit --tier public --max-per-wallet 3 --max-per-tx 2
    python -m hypehaus.cli --as 0xabc... mint --tier alpha --amount 2 --payment 0.10 --proof 0x... --proof 0x...
    python -m hypehaus.cli --as 0xdep... mint-unchecked --to 0xteam... --amount 5
    python -m hypehaus.cli token-uri --token 0
    python -m hypehaus.cli --as 0xdep... withdraw
    python -m hypehaus.cli check-invariants

State lives in the data directory: state.json (snapshot) and
events.jsonl (audit log). Writes require --as, the calling wallet.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from hypehaus.crypto.merkle import MerkleTree
from hypehaus.errors import HypeHausError, describe_error
from hypehaus.models.roles import Role
from hypehaus.models.sale import SalePhase, Tier
from hypehaus.persistence.event_log import EventLog
from hypehaus.persistence.state_store import StateStore
from hypehaus.policy.resolver import PolicyResolver
from hypehaus.service import HypeHausService, ServiceResult


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"
DEFAULT_DATA = Path(__file__).resolve().parents[2] / "data"

log = logging.getLogger("hypehaus.cli")


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _stores(data_dir: Path) -> tuple[StateStore, EventLog]:
    data_dir.mkdir(parents=True, exist_ok=True)
    return (
        StateStore(storage_path=data_dir / "state.json"),
        EventLog(storage_path=data_dir / "events.jsonl"),
    )


def _load_service(data_dir: Path) -> HypeHausService:
    state_store, event_log = _stores(data_dir)
    return HypeHausService.load(state_store, event_log)


def _require_caller(args: argparse.Namespace) -> Optional[str]:
    if not args.caller:
        print("Failed: this command needs --as <wallet>", file=sys.stderr)
        return None
    return args.caller


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, default=str))
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    if result.error_code:
        print(result.message, file=sys.stderr)
    return 1


def _read_wallets(path: Path) -> list[str]:
    with path.open("r", encoding="utf-8") as handle:
        return [line.strip() for line in handle if line.strip() and not line.startswith("#")]


def cmd_deploy(args: argparse.Namespace) -> int:
    state_store, event_log = _stores(args.data_dir)
    if state_store.exists and not args.force:
        print(f"Failed: ledger already deployed in {args.data_dir} (use --force)", file=sys.stderr)
        return 1
    resolver = PolicyResolver.from_config_dir(args.config)
    service = HypeHausService.create(
        resolver,
        deployer=args.deployer,
        payout_wallet=args.payout,
        event_log=event_log,
        state_store=state_store,
    )
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    service = _load_service(args.data_dir)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_set_sale(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    return _report(service.set_active_sale(caller, SalePhase.parse(args.phase)))


def cmd_set_root(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    return _report(service.set_tier_root(caller, Tier.parse(args.tier), args.root))


def cmd_set_price(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    if args.tier == "public":
        return _report(service.set_public_price(caller, args.price))
    return _report(service.set_tier_price(caller, Tier.parse(args.tier), args.price))


def cmd_set_limit(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    if args.tier == "public":
        per_tx = args.max_per_tx
        if per_tx is None:
            per_tx = service.public_config.max_per_tx
        return _report(service.set_public_limits(caller, per_tx, args.max_per_wallet))
    if args.max_per_tx is not None:
        print("Failed: --max-per-tx applies to the public sale only", file=sys.stderr)
        return 1
    return _report(service.set_tier_max_per_wallet(caller, Tier.parse(args.tier), args.max_per_wallet))


def cmd_mint(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    if args.tier == "public":
        result = service.mint_public(caller, args.amount, args.payment)
    else:
        result = service.mint_community(
            caller, Tier.parse(args.tier), args.amount, args.proof or [], args.payment,
        )
    return _report(result)


def cmd_mint_unchecked(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    return _report(service.mint_unchecked(caller, args.to, args.amount))


def cmd_transfer(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    return _report(service.transfer(caller, args.from_wallet, args.to, args.token))


def cmd_token_uri(args: argparse.Namespace) -> int:
    service = _load_service(args.data_dir)
    try:
        print(service.token_uri(args.token))
    except HypeHausError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_owner_of(args: argparse.Namespace) -> int:
    service = _load_service(args.data_dir)
    try:
        print(service.owner_of(args.token))
    except HypeHausError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_set_base_uri(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    return _report(service.set_base_token_uri(caller, args.uri, args.revealed))


def cmd_grant_role(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    return _report(service.grant_role(caller, Role.parse(args.role), args.wallet))


def cmd_revoke_role(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    return _report(service.revoke_role(caller, Role.parse(args.role), args.wallet))


def cmd_withdraw(args: argparse.Namespace) -> int:
    caller = _require_caller(args)
    if caller is None:
        return 1
    service = _load_service(args.data_dir)
    return _report(service.withdraw(caller))


def cmd_allowlist_root(args: argparse.Namespace) -> int:
    """Build a tier root from a wallet list (one wallet per line)."""
    wallets = _read_wallets(args.wallets)
    tree = MerkleTree.from_wallets(wallets)
    print(json.dumps({"root": tree.compute_root(), "leaves": tree.leaf_count}, indent=2))
    return 0


def cmd_allowlist_proof(args: argparse.Namespace) -> int:
    """Print the proof for one wallet of a wallet list."""
    tree = MerkleTree.from_wallets(_read_wallets(args.wallets))
    proof = tree.wallet_proof(args.wallet)
    if proof is None:
        print(f"Failed: {args.wallet} is not in {args.wallets}", file=sys.stderr)
        print(describe_error("HH_VERIFICATION_FAILURE"), file=sys.stderr)
        return 1
    print(json.dumps({"wallet": args.wallet, "proof": proof}, indent=2))
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run sale configuration invariant checks."""
    tools_dir = Path(__file__).resolve().parents[2] / "tools"
    sys.path.insert(0, str(tools_dir))
    from check_invariants import check
    return check(args.config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hypehaus",
        description="HYPEHAUS issuance ledger CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DEFAULT_DATA,
        help="Path to ledger data directory (default: data/)",
    )
    parser.add_argument("--as", dest="caller", help="Calling wallet for write commands")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # deploy
    p_deploy = sub.add_parser("deploy", help="Deploy a fresh ledger")
    p_deploy.add_argument("--deployer", required=True, help="Deployer wallet (gets Admin)")
    p_deploy.add_argument("--payout", required=True, help="Treasury payout wallet")
    p_deploy.add_argument("--force", action="store_true", help="Overwrite an existing ledger")

    # status
    sub.add_parser("status", help="Show ledger status")

    # set-sale
    p_sale = sub.add_parser("set-sale", help="Change the active sale")
    p_sale.add_argument("phase", choices=[p.value for p in SalePhase])

    # set-root
    p_root = sub.add_parser("set-root", help="Set a tier's Merkle root")
    p_root.add_argument("--tier", required=True, choices=[t.value for t in Tier])
    p_root.add_argument("--root", required=True, help="0x-prefixed 32-byte root")

    # set-price
    p_price = sub.add_parser("set-price", help="Set a tier's (or the public) price")
    p_price.add_argument("--tier", required=True, choices=[t.value for t in Tier] + ["public"])
    p_price.add_argument("--price", required=True, help="Price in ether (Decimal)")

    # set-limit
    p_limit = sub.add_parser("set-limit", help="Set a tier's (or the public) mint limits")
    p_limit.add_argument("--tier", required=True, choices=[t.value for t in Tier] + ["public"])
    p_limit.add_argument("--max-per-wallet", required=True, type=int)
    p_limit.add_argument("--max-per-tx", type=int, help="Public only (default: unchanged)")

    # mint
    p_mint = sub.add_parser("mint", help="Mint in the active sale")
    p_mint.add_argument("--tier", required=True, choices=[t.value for t in Tier] + ["public"])
    p_mint.add_argument("--amount", required=True, type=int)
    p_mint.add_argument("--payment", required=True, help="Attached payment in ether (Decimal)")
    p_mint.add_argument("--proof", action="append", help="Proof element (repeat in order)")

    # mint-unchecked
    p_airdrop = sub.add_parser("mint-unchecked", help="Reserved allocation (operator only)")
    p_airdrop.add_argument("--to", required=True, help="Receiving wallet")
    p_airdrop.add_argument("--amount", required=True, type=int)

    # transfer
    p_transfer = sub.add_parser("transfer", help="Transfer a token")
    p_transfer.add_argument("--from", dest="from_wallet", required=True)
    p_transfer.add_argument("--to", required=True)
    p_transfer.add_argument("--token", required=True, type=int)

    # token-uri / owner-of
    p_uri = sub.add_parser("token-uri", help="Show a token's metadata URI")
    p_uri.add_argument("--token", required=True, type=int)
    p_owner = sub.add_parser("owner-of", help="Show a token's owner")
    p_owner.add_argument("--token", required=True, type=int)

    # set-base-uri
    p_base = sub.add_parser("set-base-uri", help="Set base token URI and reveal flag")
    p_base.add_argument("--uri", required=True)
    p_base.add_argument("--revealed", action="store_true")

    # grant-role / revoke-role
    for name, text in (("grant-role", "Grant a role"), ("revoke-role", "Revoke a role")):
        p_role = sub.add_parser(name, help=text)
        p_role.add_argument("--role", required=True, choices=[r.value for r in Role])
        p_role.add_argument("--wallet", required=True)

    # withdraw
    sub.add_parser("withdraw", help="Withdraw the treasury to the payout wallet")

    # allowlist-root / allowlist-proof
    p_al_root = sub.add_parser("allowlist-root", help="Compute a root from a wallet list")
    p_al_root.add_argument("--wallets", required=True, type=Path)
    p_al_proof = sub.add_parser("allowlist-proof", help="Compute one wallet's proof")
    p_al_proof.add_argument("--wallets", required=True, type=Path)
    p_al_proof.add_argument("--wallet", required=True)

    # check-invariants
    sub.add_parser("check-invariants", help="Check sale configuration invariants")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "deploy": cmd_deploy,
        "status": cmd_status,
        "set-sale": cmd_set_sale,
        "set-root": cmd_set_root,
        "set-price": cmd_set_price,
        "set-limit": cmd_set_limit,
        "mint": cmd_mint,
        "mint-unchecked": cmd_mint_unchecked,
        "transfer": cmd_transfer,
        "token-uri": cmd_token_uri,
        "owner-of": cmd_owner_of,
        "set-base-uri": cmd_set_base_uri,
        "grant-role": cmd_grant_role,
        "revoke-role": cmd_revoke_role,
        "withdraw": cmd_withdraw,
        "allowlist-root": cmd_allowlist_root,
        "allowlist-proof": cmd_allowlist_proof,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except FileNotFoundError as e:
        log.debug("Missing ledger data", exc_info=True)
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        log.debug("Invalid input", exc_info=True)
        print(f"Failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

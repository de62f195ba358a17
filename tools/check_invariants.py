#!/usr/bin/env python3
"""HYPEHAUS invariant checks against the sale parameter file."""

import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = ROOT / "config"
PARAMS_FILENAME = "sale_params.json"
TIERS = ("alpha", "hypelister", "hypemember")


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def parse_price(value, label: str, errors: list[str]):
    try:
        price = Decimal(value)
    except (InvalidOperation, TypeError):
        errors.append(f"{label} is not a decimal string: {value!r}")
        return None
    if price < 0:
        errors.append(f"{label} must be >= 0, got {price}")
    return price


def check_limit(value, label: str, errors: list[str]) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        errors.append(f"{label} must be an integer >= 1, got {value!r}")


def check(config_dir=None) -> int:
    params = load_json(Path(config_dir or CONFIG_DIR) / PARAMS_FILENAME)
    errors: list[str] = []

    # --- Supply ---
    max_supply = params["collection"]["max_supply"]
    if not isinstance(max_supply, int) or max_supply <= 0:
        errors.append(f"max_supply must be a positive integer, got {max_supply!r}")

    # --- Community tiers ---
    tier_prices = {}
    for tier in TIERS:
        data = params["tiers"].get(tier)
        if data is None:
            errors.append(f"tiers missing definition: {tier}")
            continue
        tier_prices[tier] = parse_price(data.get("price"), f"tiers.{tier}.price", errors)
        check_limit(data.get("max_per_wallet"), f"tiers.{tier}.max_per_wallet", errors)
        if isinstance(max_supply, int) and data.get("max_per_wallet", 0) > max_supply:
            errors.append(f"tiers.{tier}.max_per_wallet exceeds max_supply")

    # --- Public sale ---
    public = params["public"]
    public_price = parse_price(public.get("price"), "public.price", errors)
    check_limit(public.get("max_per_tx"), "public.max_per_tx", errors)
    check_limit(public.get("max_per_wallet"), "public.max_per_wallet", errors)
    if public.get("max_per_tx", 0) > public.get("max_per_wallet", 0):
        errors.append("public.max_per_tx cannot exceed public.max_per_wallet")

    # Community allowlists must never pay more than the public
    if public_price is not None:
        for tier, price in tier_prices.items():
            if price is not None and price > public_price:
                errors.append(f"tiers.{tier}.price exceeds public.price")

    # --- Metadata ---
    base_uri = params.get("metadata", {}).get("base_token_uri", "")
    if base_uri and not base_uri.endswith("/"):
        errors.append("metadata.base_token_uri must end with '/'")

    if errors:
        print("Invariant check FAILED:")
        for error in errors:
            print(f"- {error}")
        return 1

    print("Invariant check PASSED")
    return 0


if __name__ == "__main__":
    sys.exit(check(sys.argv[1] if len(sys.argv) > 1 else None))

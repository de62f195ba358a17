"""Policy resolver: deployment-time sale parameters.

Parameters live in config/sale_params.json:

    collection   name, symbol, max_supply
    tiers        alpha / hypelister / hypemember: price, max_per_wallet
    public       price, max_per_tx, max_per_wallet
    metadata     base_token_uri (masked; reveal happens at runtime)

Prices are strings parsed as Decimal so that no float ever touches a
payment. Loading validates everything up front; a bad file raises
ValueError before a ledger is built from it.
"""

from __future__ import annotations

import copy
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from hypehaus.models.sale import PublicSaleConfig, Tier, TierConfig

PARAMS_FILENAME = "sale_params.json"


class PolicyResolver:
    """Typed access to the sale parameters.

    Usage:
        resolver = PolicyResolver.from_config_dir(Path("config"))
        resolver.max_supply()
        resolver.tier_config(Tier.ALPHA)
    """

    def __init__(self, params: dict[str, Any]) -> None:
        self._params = copy.deepcopy(params)
        errors = validate_params(self._params)
        if errors:
            raise ValueError("Invalid sale parameters: " + "; ".join(errors))

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        path = Path(config_dir) / PARAMS_FILENAME
        with path.open("r", encoding="utf-8") as handle:
            return cls(json.load(handle))

    def collection_name(self) -> str:
        return self._params["collection"].get("name", "HYPEHAUS")

    def max_supply(self) -> int:
        return int(self._params["collection"]["max_supply"])

    def tier_config(self, tier: Tier) -> TierConfig:
        data = self._params["tiers"][tier.value]
        return TierConfig(
            price=Decimal(data["price"]),
            max_per_wallet=int(data["max_per_wallet"]),
        )

    def tier_configs(self) -> dict[Tier, TierConfig]:
        return {tier: self.tier_config(tier) for tier in Tier}

    def public_config(self) -> PublicSaleConfig:
        data = self._params["public"]
        return PublicSaleConfig(
            price=Decimal(data["price"]),
            max_per_tx=int(data["max_per_tx"]),
            max_per_wallet=int(data["max_per_wallet"]),
        )

    def base_token_uri(self) -> str:
        return self._params.get("metadata", {}).get("base_token_uri", "")


def validate_params(params: dict[str, Any]) -> list[str]:
    """Structural checks on raw parameters. Returns errors (empty = OK)."""
    errors: list[str] = []

    collection = params.get("collection")
    if not isinstance(collection, dict):
        return ["missing 'collection' section"]
    max_supply = collection.get("max_supply")
    if isinstance(max_supply, bool) or not isinstance(max_supply, int) or max_supply <= 0:
        errors.append(f"collection.max_supply must be a positive integer, got {max_supply!r}")

    tiers = params.get("tiers")
    if not isinstance(tiers, dict):
        errors.append("missing 'tiers' section")
        tiers = {}
    for tier in Tier:
        data = tiers.get(tier.value)
        if not isinstance(data, dict):
            errors.append(f"tiers missing definition: {tier.value}")
            continue
        _check_price(data.get("price"), f"tiers.{tier.value}.price", errors)
        _check_limit(data.get("max_per_wallet"), f"tiers.{tier.value}.max_per_wallet", errors)

    public = params.get("public")
    if not isinstance(public, dict):
        errors.append("missing 'public' section")
    else:
        _check_price(public.get("price"), "public.price", errors)
        _check_limit(public.get("max_per_tx"), "public.max_per_tx", errors)
        _check_limit(public.get("max_per_wallet"), "public.max_per_wallet", errors)
        per_tx, per_wallet = public.get("max_per_tx"), public.get("max_per_wallet")
        if isinstance(per_tx, int) and isinstance(per_wallet, int) and per_tx > per_wallet:
            errors.append("public.max_per_tx cannot exceed public.max_per_wallet")

    return errors


def _check_price(value: Any, label: str, errors: list[str]) -> None:
    if not isinstance(value, str):
        errors.append(f"{label} must be a decimal string, got {value!r}")
        return
    try:
        price = Decimal(value)
    except InvalidOperation:
        errors.append(f"{label} is not a decimal: {value!r}")
        return
    if not price.is_finite() or price < 0:
        errors.append(f"{label} must be non-negative, got {value}")


def _check_limit(value: Any, label: str, errors: list[str]) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        errors.append(f"{label} must be an integer >= 1, got {value!r}")

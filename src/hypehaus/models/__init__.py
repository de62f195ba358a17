"""Core data models for the HYPEHAUS issuance ledger."""

from hypehaus.models.roles import Role
from hypehaus.models.sale import (
    ZERO_ROOT,
    MetadataConfig,
    PublicSaleConfig,
    SalePhase,
    Tier,
    TierConfig,
)
from hypehaus.models.token import MintReceipt, TransferNotice
from hypehaus.models.wallet import normalize_wallet

__all__ = [
    "Role",
    "ZERO_ROOT",
    "MetadataConfig",
    "PublicSaleConfig",
    "SalePhase",
    "Tier",
    "TierConfig",
    "MintReceipt",
    "TransferNotice",
    "normalize_wallet",
]

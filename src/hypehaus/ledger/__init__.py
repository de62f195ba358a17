"""Ledger: token supply, ownership and claim records."""

from hypehaus.ledger.claims import ClaimTracker
from hypehaus.ledger.supply import SupplyLedger

__all__ = ["ClaimTracker", "SupplyLedger"]

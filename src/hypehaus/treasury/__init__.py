"""Treasury: payment balance and withdrawal."""

from hypehaus.treasury.withdrawal import TreasuryWithdrawal

__all__ = ["TreasuryWithdrawal"]

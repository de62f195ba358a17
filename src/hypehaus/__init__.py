"""HYPEHAUS: tiered, supply-capped issuance ledger for numbered collectibles."""

__version__ = "0.1.0"

"""Issuance: the mint orchestrator."""

from hypehaus.mint.orchestrator import MintOrchestrator

__all__ = ["MintOrchestrator"]

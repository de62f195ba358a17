"""Sale configuration: phase and tier terms."""

from hypehaus.sale.state_machine import SaleStateMachine

__all__ = ["SaleStateMachine"]

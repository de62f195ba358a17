"""Access control: roles and the designated owner."""

from hypehaus.access.registry import AccessControlRegistry, has_capability

__all__ = ["AccessControlRegistry", "has_capability"]

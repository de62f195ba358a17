"""Role model for access control.

Roles are flat. Admin is not a superset by inheritance; it is an
override applied by the capability check.
"""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    """Administrative roles."""
    ADMIN = "admin"
    OPERATOR = "operator"
    WITHDRAWER = "withdrawer"

    @classmethod
    def parse(cls, value: str) -> Role:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f'Invalid role: "{value}"') from None

"""Access control registry: role membership and authorization checks.

Three roles: Admin, Operator, Withdrawer. Admin grants and revokes every
role and passes every role check without an explicit grant. The check
itself is a plain capability function, not a role hierarchy.

Separately from roles, exactly one wallet is the designated owner,
reported to marketplaces. Ownership moves only at the current owner's
request.

Fail-closed: every gated operation elsewhere in the ledger calls
require_role() as its first statement, so a rejected caller never
causes a side effect.
"""

from __future__ import annotations

from typing import Iterable

from hypehaus.errors import Unauthorized
from hypehaus.models.roles import Role
from hypehaus.models.wallet import normalize_wallet
from hypehaus.state import LedgerState


def has_capability(
    required: Role,
    caller_roles: Iterable[Role],
    is_admin: bool,
) -> bool:
    """True if a caller holding caller_roles may act as required."""
    if is_admin:
        return True
    return required in set(caller_roles)


class AccessControlRegistry:
    """Role grants over a LedgerState.

    Usage:
        access = AccessControlRegistry(state)
        access.grant_role(admin, Role.OPERATOR, "0xabc...")
        access.require_role(Role.OPERATOR, "0xabc...")
    """

    def __init__(self, state: LedgerState) -> None:
        self._state = state

    def roles_of(self, wallet: str) -> set[Role]:
        """Roles explicitly granted to a wallet."""
        wallet = normalize_wallet(wallet)
        return {role for role, members in self._state.roles.items() if wallet in members}

    def has_role(self, role: Role, wallet: str) -> bool:
        """Explicit grant, or Admin override."""
        granted = self.roles_of(wallet)
        return has_capability(role, granted, Role.ADMIN in granted)

    def require_role(self, role: Role, caller: str) -> None:
        if not self.has_role(role, caller):
            raise Unauthorized(role.value, caller)

    def grant_role(self, caller: str, role: Role, wallet: str) -> bool:
        """Grant a role. Returns False if the wallet already held it."""
        self.require_role(Role.ADMIN, caller)
        wallet = normalize_wallet(wallet)
        members = self._state.roles.setdefault(role, set())
        if wallet in members:
            return False
        members.add(wallet)
        return True

    def revoke_role(self, caller: str, role: Role, wallet: str) -> bool:
        """Revoke a role. Returns False if the wallet did not hold it."""
        self.require_role(Role.ADMIN, caller)
        wallet = normalize_wallet(wallet)
        members = self._state.roles.setdefault(role, set())
        if wallet not in members:
            return False
        members.discard(wallet)
        return True

    def members(self, role: Role) -> list[str]:
        """Wallets explicitly granted a role, sorted."""
        return sorted(self._state.roles.get(role, set()))

    @property
    def owner(self) -> str:
        return self._state.owner

    def transfer_ownership(self, caller: str, new_owner: str) -> str:
        """Hand the owner designation to another wallet.

        Returns the previous owner.
        """
        if normalize_wallet(caller) != self._state.owner:
            raise Unauthorized("owner", caller)
        previous = self._state.owner
        self._state.owner = normalize_wallet(new_owner)
        return previous

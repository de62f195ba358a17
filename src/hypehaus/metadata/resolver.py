"""Metadata resolver: token URIs derived from the base URI and reveal flag.

Nothing is stored per token. Before reveal a URI is the base plus the
id, which hides the real metadata format; after reveal it gains a
".json" suffix. Changing the base or the flag changes the URI of every
token already minted.
"""

from __future__ import annotations

from typing import Optional

from hypehaus.access.registry import AccessControlRegistry
from hypehaus.errors import UnknownToken
from hypehaus.models.roles import Role
from hypehaus.models.sale import MetadataConfig
from hypehaus.state import LedgerState


def resolve_token_uri(metadata: MetadataConfig, token_id: int) -> str:
    if metadata.is_revealed:
        return f"{metadata.base_uri}{token_id}.json"
    return f"{metadata.base_uri}{token_id}"


class MetadataResolver:

    def __init__(
        self,
        state: LedgerState,
        access: Optional[AccessControlRegistry] = None,
    ) -> None:
        self._state = state
        self._access = access or AccessControlRegistry(state)

    @property
    def config(self) -> MetadataConfig:
        return self._state.metadata

    def token_uri(self, token_id: int) -> str:
        if not 0 <= token_id < self._state.total_minted:
            raise UnknownToken(f"Token {token_id} has not been minted")
        return resolve_token_uri(self._state.metadata, token_id)

    def set_base_token_uri(self, caller: str, base_uri: str, revealed: bool) -> MetadataConfig:
        """Replace the metadata config. Returns the previous config."""
        self._access.require_role(Role.OPERATOR, caller)
        previous = MetadataConfig(
            base_uri=self._state.metadata.base_uri,
            is_revealed=self._state.metadata.is_revealed,
        )
        self._state.metadata.base_uri = base_uri
        self._state.metadata.is_revealed = bool(revealed)
        return previous

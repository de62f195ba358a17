"""State store: JSON snapshot of the ledger state.

The snapshot is rewritten after every committed request. Writes go to a
sibling temp file first and are then moved into place, so a crash never
leaves a half-written snapshot behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from hypehaus.state import LedgerState


class StateStore:

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def exists(self) -> bool:
        return self._storage_path.exists()

    def save(self, state: LedgerState) -> None:
        tmp_path = self._storage_path.with_name(self._storage_path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(state.to_dict(), f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp_path, self._storage_path)

    def load(self) -> Optional[LedgerState]:
        """Load the last snapshot, or None if nothing has been saved."""
        if not self._storage_path.exists():
            return None
        with self._storage_path.open("r", encoding="utf-8") as f:
            return LedgerState.from_dict(json.load(f))

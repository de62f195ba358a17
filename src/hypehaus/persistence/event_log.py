"""Append-only event log: the permanent record of every ledger change.

Every committed request produces one or more event records appended to
the log. Events are immutable once written. The log serves as:
1. The issuance feed for indexers and front ends (one TRANSFER event
   per minted token, from_wallet null).
2. The audit trail for administrative changes (phase, roots, prices,
   roles, metadata, withdrawals).

Rejected requests produce no events.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence
from uuid import uuid4

from hypehaus.models.token import TransferNotice


class EventKind(str, enum.Enum):
    """Classification of ledger events."""
    TRANSFER = "transfer"
    SALE_CHANGED = "sale_changed"
    TIER_ROOT_SET = "tier_root_set"
    TIER_PRICE_SET = "tier_price_set"
    TIER_LIMIT_SET = "tier_limit_set"
    PUBLIC_CONFIG_SET = "public_config_set"
    BASE_URI_SET = "base_uri_set"
    ROLE_GRANTED = "role_granted"
    ROLE_REVOKED = "role_revoked"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    WITHDRAWAL = "withdrawal"


def _canonical_hash(
    event_id: str,
    event_kind: str,
    timestamp_utc: str,
    caller: str,
    payload: dict[str, Any],
) -> str:
    canonical = json.dumps(
        {
            "event_id": event_id,
            "event_kind": event_kind,
            "timestamp_utc": timestamp_utc,
            "caller": caller,
            "payload": payload,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


@dataclass(frozen=True)
class EventRecord:
    """A single immutable event.

    The event_hash is computed at creation time over the canonical JSON
    of every other field, and re-checked when the log is loaded.
    """
    event_id: str
    event_kind: EventKind
    timestamp_utc: str
    caller: str
    payload: dict[str, Any]
    event_hash: str

    @staticmethod
    def create(
        event_kind: EventKind,
        caller: str,
        payload: dict[str, Any],
        event_id: Optional[str] = None,
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Create a new event record with computed hash."""
        if event_id is None:
            event_id = f"evt_{uuid4().hex[:16]}"
        ts = timestamp_utc or datetime.now(timezone.utc)
        ts_str = ts.strftime("%Y-%m-%dT%H:%M:%SZ")
        return EventRecord(
            event_id=event_id,
            event_kind=event_kind,
            timestamp_utc=ts_str,
            caller=caller,
            payload=payload,
            event_hash=_canonical_hash(event_id, event_kind.value, ts_str, caller, payload),
        )

    @staticmethod
    def transfer(
        notice: TransferNotice,
        caller: str,
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Event for a TransferNotice (issuance when from_wallet is None)."""
        return EventRecord.create(
            EventKind.TRANSFER,
            caller,
            {
                "from_wallet": notice.from_wallet,
                "to_wallet": notice.to_wallet,
                "token_id": notice.token_id,
            },
            timestamp_utc=timestamp_utc,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_kind": self.event_kind.value,
            "timestamp_utc": self.timestamp_utc,
            "caller": self.caller,
            "payload": self.payload,
            "event_hash": self.event_hash,
        }


class EventLog:
    """Append-only event log with optional file persistence.

    Events can only be appended, never modified or deleted.
    The log can be persisted to a JSONL file (one JSON object per line)
    and loaded back for recovery.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._events: list[EventRecord] = []
        self._storage_path = storage_path
        self._event_ids: set[str] = set()

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def append(self, event: EventRecord) -> None:
        """Append an event to the log.

        Raises ValueError if event_id is a duplicate (replay protection).
        """
        self.append_all([event])

    def append_all(self, events: Sequence[EventRecord]) -> None:
        """Append a batch of events as one unit.

        Either every event is recorded, in memory and on file, or none
        is. Raises ValueError on any duplicate event_id, including one
        repeated inside the batch. Raises OSError if the file write
        fails, after truncating the file back to its previous length.
        """
        batch_ids: set[str] = set()
        for event in events:
            if event.event_id in self._event_ids or event.event_id in batch_ids:
                raise ValueError(f"Duplicate event ID: {event.event_id}")
            batch_ids.add(event.event_id)

        if self._storage_path and events:
            lines = [
                json.dumps(e.to_dict(), sort_keys=True, ensure_ascii=False) + "\n"
                for e in events
            ]
            self._append_lines_atomically(lines)

        self._events.extend(events)
        self._event_ids.update(batch_ids)

    def events(self, kind: Optional[EventKind] = None) -> list[EventRecord]:
        """Return events, optionally filtered by kind."""
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.event_kind == kind]

    def issuances(self) -> list[EventRecord]:
        """TRANSFER events with no sender, in mint order."""
        return [
            e for e in self._events
            if e.event_kind == EventKind.TRANSFER and e.payload.get("from_wallet") is None
        ]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None

    def _append_lines_atomically(self, lines: list[str]) -> None:
        size = self._storage_path.stat().st_size if self._storage_path.exists() else 0
        try:
            self._write_lines(lines)
        except OSError:
            if self._storage_path.exists():
                with self._storage_path.open("r+b") as f:
                    f.truncate(size)
            raise

    def _write_lines(self, lines: list[str]) -> None:
        with self._storage_path.open("a", encoding="utf-8") as f:
            f.write("".join(lines))
            f.flush()

    def _load_from_file(self, path: Path) -> None:
        """Load events from a JSONL file with integrity verification.

        Fail-closed: rejects tampered records (hash mismatch) and
        duplicate event IDs.
        """
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)
                event_id = data["event_id"]

                if event_id in self._event_ids:
                    raise ValueError(
                        f"Duplicate event ID on recovery (line {line_num}): {event_id}"
                    )

                expected_hash = _canonical_hash(
                    event_id,
                    data["event_kind"],
                    data["timestamp_utc"],
                    data["caller"],
                    data["payload"],
                )
                if data["event_hash"] != expected_hash:
                    raise ValueError(
                        f"Integrity check failed (line {line_num}): event {event_id} "
                        f"stored hash {data['event_hash']} != computed {expected_hash}"
                    )

                event = EventRecord(
                    event_id=event_id,
                    event_kind=EventKind(data["event_kind"]),
                    timestamp_utc=data["timestamp_utc"],
                    caller=data["caller"],
                    payload=data["payload"],
                    event_hash=data["event_hash"],
                )
                self._events.append(event)
                self._event_ids.add(event_id)

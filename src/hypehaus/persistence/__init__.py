"""Persistence: event log and state snapshots."""

from hypehaus.persistence.event_log import EventKind, EventLog, EventRecord
from hypehaus.persistence.state_store import StateStore

__all__ = ["EventKind", "EventLog", "EventRecord", "StateStore"]

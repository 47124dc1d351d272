"""Persistence — the append-only settlement event log."""

from orbsettle.persistence.event_log import EventKind, EventLog, EventRecord

__all__ = ["EventKind", "EventLog", "EventRecord"]

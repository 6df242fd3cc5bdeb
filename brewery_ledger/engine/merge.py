"""
Reconciliation Merge

Combines a remote snapshot and a local snapshot into one.

Keyed collections are merged per record id, last writer wins: when both
sides hold the same id, the record with the later `created_at` is kept
whole. There is no field-level merge. On equal timestamps the record
inserted second (the local one) is kept. Records without a timestamp
sort before every timestamped record.

Stored entries that could not be read as records are carried along
unchanged (see merge_unparsed()).

The config singleton is taken from the remote snapshot when it exists
there, otherwise from the local one.

This is a best-effort policy for a single user working from more than
one device, not a conflict-free replication scheme.
"""

import json
from datetime import datetime, timezone
from typing import Any, Iterable, TypeVar

from brewery_ledger.models.records import LedgerRecord
from brewery_ledger.models.snapshot import RECORD_COLLECTIONS, LedgerSnapshot


R = TypeVar("R", bound=LedgerRecord)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _written_at(record: LedgerRecord) -> datetime:
    return record.created_at if record.created_at is not None else _EPOCH


def merge_records(remote: Iterable[R], local: Iterable[R]) -> list[R]:
    """
    Merge two record lists by id.
    
    Output order is the order in which ids were first seen.
    """
    merged: dict[str, R] = {}
    for source in (remote, local):
        for record in source:
            existing = merged.get(record.id)
            if existing is None or _written_at(record) >= _written_at(existing):
                merged[record.id] = record
    return list(merged.values())


def _entry_key(entry: Any) -> str:
    if isinstance(entry, dict) and entry.get("id") not in (None, ""):
        return f"id:{entry['id']}"
    return "raw:" + json.dumps(entry, sort_keys=True, default=str)


def merge_unparsed(
    remote: Iterable[Any],
    local: Iterable[Any],
    known_ids: set[str],
) -> list[Any]:
    """
    Merge stored entries that could not be read as records.
    
    An entry whose id now belongs to a readable record is dropped. For
    the rest, the local copy of an id replaces the remote one; entries
    without an id are deduplicated by content.
    """
    merged: dict[str, Any] = {}
    for source in (remote, local):
        for entry in source:
            key = _entry_key(entry)
            if key.startswith("id:") and key[3:] in known_ids:
                continue
            merged[key] = entry
    return list(merged.values())


def merge_snapshots(remote: LedgerSnapshot, local: LedgerSnapshot) -> LedgerSnapshot:
    """Merge every collection of two snapshots into a new snapshot."""
    merged = LedgerSnapshot(
        config=remote.config if remote.config is not None else local.config,
    )
    for collection in RECORD_COLLECTIONS:
        records = merge_records(remote.records(collection), local.records(collection))
        merged = merged.replace_records(collection, records).with_unparsed(
            collection,
            merge_unparsed(
                remote.unparsed_entries(collection),
                local.unparsed_entries(collection),
                {str(record.id) for record in records},
            ),
        )
    return merged

"""
ndjsondelta.delta: Keyed three-way comparison of two record collections.

Given two collections of records (old, new) and a key selector, classify
every key as added, removed, changed or unchanged.

ALGORITHM:
    1. Build keyed_set(old) and keyed_set(new).  A later record with a key
       already seen replaces the earlier one (last write wins).
    2. Keys only in new  → ADDED   (the new record)
    3. Keys only in old  → REMOVED (the old record)
    4. Keys in both      → CHANGED (old, new) unless deep_equal(old, new)

Output order follows dict iteration order of the keyed sets: a key sits at
the position of its first occurrence and carries the value of its last.
ADDED follows the new collection; REMOVED and CHANGED follow the old one.
Pass sort_by_key=True to order every list by key instead.

The key selector is trusted: it is called once per record, and whatever it
raises propagates out of compute_delta with no partial result.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, NamedTuple

from .core import JAtom, JObject, JValue, deep_equal
from .formats import from_python, parse_ndjson, to_python
from .log import get_logger

_log = get_logger("delta")

KeySelector = Callable[[JValue], str]


class Change(NamedTuple):
    """A record present on both sides with different content."""
    old: JValue
    new: JValue


@dataclass(frozen=True)
class DeltaResult:
    """Result of comparing two record collections."""
    added: list[JValue] = field(default_factory=list)
    removed: list[JValue] = field(default_factory=list)
    changed: list[Change] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    def counts(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "changed": len(self.changed),
        }

    def to_python(self) -> dict[str, Any]:
        """Plain dict of plain Python values, ready for json.dumps."""
        return {
            "added": [to_python(r) for r in self.added],
            "removed": [to_python(r) for r in self.removed],
            "changed": [
                {"old": to_python(c.old), "new": to_python(c.new)}
                for c in self.changed
            ],
        }

    def __repr__(self) -> str:
        if self.is_empty:
            return "DeltaResult(no differences)"
        c = self.counts()
        return f"DeltaResult(added={c['added']}, removed={c['removed']}, changed={c['changed']})"


# ═══════════════════════════════════════════════════════════════════
#  KEY SELECTORS
# ═══════════════════════════════════════════════════════════════════

def _integral_floats_as_int(obj: Any) -> Any:
    if type(obj) is float and obj.is_integer():
        return int(obj)
    if isinstance(obj, dict):
        return {k: _integral_floats_as_int(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_integral_floats_as_int(v) for v in obj]
    return obj


def field_key(*path: str) -> KeySelector:
    """
    Build a selector that reads the field at *path* from an object record.

        field_key("id")             → record["id"]
        field_key("meta", "uuid")   → record["meta"]["uuid"]

    String values are used as is.  Any other value is rendered as compact
    JSON with sorted keys, so 1 becomes "1" and true becomes "true".
    Integral floats render as integers at any depth, so 1 and 1.0 give the
    same key, as they are equal records.  A missing field raises KeyError;
    a non-object along the path raises TypeError.
    """
    if not path:
        raise ValueError("field_key needs at least one field name")

    def select(record: JValue) -> str:
        node = record
        for name in path:
            if not isinstance(node, JObject):
                raise TypeError(
                    f"Cannot read field {name!r} from {type(node).__name__} "
                    f"(path {'.'.join(path)})"
                )
            node = node[name]
        if isinstance(node, JAtom) and node.kind == "string":
            return node.val
        return json.dumps(
            _integral_floats_as_int(to_python(node)),
            separators=(",", ":"),
            sort_keys=True,
        )

    select.__name__ = f"field_key({'.'.join(path)})"
    return select


def composite_key(*selectors: KeySelector, sep: str = "\x1f") -> KeySelector:
    """Join the outputs of several selectors into one key."""
    if not selectors:
        raise ValueError("composite_key needs at least one selector")

    def select(record: JValue) -> str:
        return sep.join(s(record) for s in selectors)

    return select


# ═══════════════════════════════════════════════════════════════════
#  DELTA ENGINE
# ═══════════════════════════════════════════════════════════════════

def keyed_set(records: Iterable[JValue], key_of: KeySelector) -> dict[str, JValue]:
    """Index *records* by key.  Duplicate keys: the last record wins."""
    indexed: dict[str, JValue] = {}
    for record in records:
        indexed[key_of(record)] = record
    return indexed


def compute_delta_records(
    records_a: Iterable[Any],
    records_b: Iterable[Any],
    key_of: KeySelector,
    *,
    sort_by_key: bool = False,
) -> DeltaResult:
    """
    Compare two already-parsed collections.

    Items may be records or plain JSON-compatible Python values (as returned
    by json.loads); the latter are converted with from_python first.
    """
    old = keyed_set((from_python(r) for r in records_a), key_of)
    new = keyed_set((from_python(r) for r in records_b), key_of)

    added_keys = [k for k in new if k not in old]
    removed_keys = [k for k in old if k not in new]
    changed_keys = [k for k in old if k in new and not deep_equal(old[k], new[k])]

    if sort_by_key:
        added_keys.sort()
        removed_keys.sort()
        changed_keys.sort()

    result = DeltaResult(
        added=[new[k] for k in added_keys],
        removed=[old[k] for k in removed_keys],
        changed=[Change(old[k], new[k]) for k in changed_keys],
    )
    _log.debug("delta_computed", old_keys=len(old), new_keys=len(new), **result.counts())
    return result


def compute_delta(
    text_a: str,
    text_b: str,
    key_of: KeySelector,
    *,
    sort_by_key: bool = False,
) -> DeltaResult:
    """
    Compare two NDJSON texts.

    Arguments:
        text_a: The old NDJSON text
        text_b: The new NDJSON text
        key_of: Maps a record to its identity string

    Malformed lines on either side are skipped (see parse_ndjson).
    """
    return compute_delta_records(
        parse_ndjson(text_a),
        parse_ndjson(text_b),
        key_of,
        sort_by_key=sort_by_key,
    )

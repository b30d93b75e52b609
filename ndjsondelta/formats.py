"""
ndjsondelta.formats: Convert between NDJSON text, Python values and records.

Supported conversions:
    • Python objects (dict, list, tuple, str, int, float, bool, None) ↔ JValue
    • JSON strings ↔ JValue
    • NDJSON text → ordered list of JValue (the line parser)
    • JValue sequence → NDJSON text
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Iterable, Iterator

from .core import JArray, JAtom, JObject, JValue
from .log import get_logger

_log = get_logger("formats")


class NonStandardJSONError(ValueError):
    """Raised for the NaN/Infinity extensions Python's json module accepts."""


class RecordLimitError(ValueError):
    """A line nests too deeply or holds a number too long to convert."""


# Deepest array/object nesting accepted per record.  Records are walked
# recursively (conversion, deep_equal, hashing), so this stays well under
# the interpreter recursion limit.
MAX_DEPTH = 200

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


# Errors that cause a single NDJSON line to be dropped.  Anything else
# raised while parsing a line propagates to the caller.
SKIPPABLE_LINE_ERRORS = (json.JSONDecodeError, NonStandardJSONError, RecordLimitError)


# ═══════════════════════════════════════════════════════════════════
#  PYTHON OBJECTS ↔ RECORDS
# ═══════════════════════════════════════════════════════════════════

def from_python(obj: Any) -> JValue:
    """
    Convert a Python object to a record.

    Mapping:
        None       → JAtom(None)
        bool       → JAtom(bool)
        int/float  → JAtom(number)
        str        → JAtom(str)
        list/tuple → JArray(...)
        dict       → JObject(...)

    Records pass through unchanged.  Nested structures are converted
    recursively.  Anything that JSON cannot represent raises.
    """
    if isinstance(obj, JValue):
        return obj
    if obj is None or isinstance(obj, (bool, int, str)):
        return JAtom(obj)
    if isinstance(obj, float):
        if not math.isfinite(obj):
            raise ValueError(f"JSON cannot represent {obj!r}")
        return JAtom(obj)
    if isinstance(obj, (list, tuple)):
        return JArray(from_python(item) for item in obj)
    if isinstance(obj, dict):
        entries = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise TypeError(f"JSON object keys must be str, got {type(key).__name__}")
            entries[key] = from_python(value)
        return JObject(entries)
    raise TypeError(f"Cannot convert {type(obj).__name__} to a JSON record")


def to_python(val: JValue) -> Any:
    """
    Convert a record back to a plain Python object.

    Inverse of from_python:
        to_python(from_python(obj)) == obj
    for JSON-compatible objects (tuples come back as lists).
    """
    if isinstance(val, JAtom):
        return val.val
    if isinstance(val, JArray):
        return [to_python(item) for item in val.items]
    if isinstance(val, JObject):
        return {k: to_python(v) for k, v in val.entries.items()}
    raise TypeError(f"Unknown JValue type: {type(val)}")


# ═══════════════════════════════════════════════════════════════════
#  JSON STRINGS ↔ RECORDS
# ═══════════════════════════════════════════════════════════════════

def _reject_constant(name: str) -> Any:
    raise NonStandardJSONError(f"Non-standard JSON constant: {name}")


def _parse_float(literal: str) -> float:
    value = float(literal)
    # 1e400 and friends overflow to inf
    if not math.isfinite(value):
        raise NonStandardJSONError(f"Number out of range: {literal}")
    return value


def _parse_int(literal: str) -> int:
    try:
        return int(literal)
    except ValueError as exc:
        # int() refuses literals past sys.get_int_max_str_digits()
        raise RecordLimitError(f"Integer literal too long ({len(literal)} digits)") from exc


def _check_depth(obj: Any, limit: int = MAX_DEPTH) -> None:
    """Raise RecordLimitError if *obj* nests containers deeper than *limit*."""
    stack = [(obj, 1)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        if depth > limit:
            raise RecordLimitError(f"Nesting deeper than {limit} levels")
        stack.extend((child, depth + 1) for child in children)


def from_json(text: str) -> JValue:
    """Parse one strict JSON document into a record."""
    try:
        obj = json.loads(
            text,
            parse_constant=_reject_constant,
            parse_float=_parse_float,
            parse_int=_parse_int,
        )
    except RecursionError as exc:
        raise RecordLimitError("Nesting too deep to decode") from exc
    _check_depth(obj)
    return from_python(obj)


def to_json(val: JValue, **kwargs) -> str:
    """Convert a record to a JSON string."""
    return json.dumps(to_python(val), **kwargs)


# ═══════════════════════════════════════════════════════════════════
#  NDJSON
# ═══════════════════════════════════════════════════════════════════

def iter_ndjson(text: str) -> Iterator[tuple[int, JValue]]:
    """
    Yield ``(line_number, record)`` for every parsable line of *text*.

    Lines break on ``\\r\\n``, ``\\r`` or ``\\n`` and are stripped.  Unicode line
    separators such as U+2028 are not breaks, so they stay part of the JSON
    string that holds them.
    Blank lines are ignored.  A line that is not valid JSON, or that exceeds
    MAX_DEPTH or the integer digit limit, is skipped and parsing continues.
    The skip is logged but never raised.
    """
    skipped = 0
    for line_number, line in enumerate(_LINE_BREAK.split(text), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = from_json(line)
        except SKIPPABLE_LINE_ERRORS as exc:
            skipped += 1
            _log.debug("ndjson_line_skipped", line_number=line_number, error=str(exc))
            continue
        yield line_number, record
    if skipped:
        _log.info("ndjson_lines_skipped", skipped=skipped)


def parse_ndjson(text: str) -> list[JValue]:
    """Parse NDJSON text into its records, in file order."""
    records = [record for _, record in iter_ndjson(text)]
    _log.debug("ndjson_parsed", records=len(records))
    return records


def to_ndjson(records: Iterable[JValue]) -> str:
    """Serialize records as NDJSON: one compact document per line."""
    return "".join(
        to_json(record, separators=(",", ":"), ensure_ascii=False) + "\n"
        for record in records
    )

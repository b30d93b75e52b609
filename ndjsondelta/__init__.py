"""
NDJSON Delta
============

Which records were added, removed or changed between two NDJSON sources?

    old = '{"id":1,"name":"A"}\\n{"id":2,"name":"B"}\\n{"id":3,"name":"C"}'
    new = '{"id":1,"name":"A"}\\n{"id":2,"name":"B2"}\\n{"id":4,"name":"D"}'

    result = compute_delta(old, new, field_key("id"))
    result.added    → [{"id":4,"name":"D"}]
    result.removed  → [{"id":3,"name":"C"}]
    result.changed  → [({"id":2,"name":"B"}, {"id":2,"name":"B2"})]

Records are matched by a caller-supplied key selector and compared by deep
structural equality: object key order and number formatting never count
as a change.  Malformed lines are skipped, and duplicate keys within one
source resolve to the last record seen.
"""

from ndjsondelta.core import (
    # Types
    JValue,
    JAtom,
    JArray,
    JObject,
    # Equality
    deep_equal,
)
from ndjsondelta.formats import (
    from_json, to_json, from_python, to_python,
    iter_ndjson, parse_ndjson, to_ndjson,
    NonStandardJSONError, RecordLimitError, MAX_DEPTH,
)
from ndjsondelta.delta import (
    Change, DeltaResult, KeySelector,
    compute_delta, compute_delta_records, keyed_set,
    field_key, composite_key,
)
from ndjsondelta.sources import (
    Source, TextSource, LocalFileSource, RemoteObjectSource, HttpObjectReader,
    SourceError, SourceNotFoundError, SourceAuthError, SourceReadError,
    read_local, open_source,
    compute_delta_from_files, compute_delta_from_sources,
)

__version__ = "0.1.0"
__all__ = [
    "JValue", "JAtom", "JArray", "JObject",
    "deep_equal",
    "from_json", "to_json", "from_python", "to_python",
    "iter_ndjson", "parse_ndjson", "to_ndjson",
    "NonStandardJSONError", "RecordLimitError", "MAX_DEPTH",
    "Change", "DeltaResult", "KeySelector",
    "compute_delta", "compute_delta_records", "keyed_set",
    "field_key", "composite_key",
    "Source", "TextSource", "LocalFileSource", "RemoteObjectSource", "HttpObjectReader",
    "SourceError", "SourceNotFoundError", "SourceAuthError", "SourceReadError",
    "read_local", "open_source",
    "compute_delta_from_files", "compute_delta_from_sources",
]

"""
ndjsondelta.core: Immutable JSON records and deep equality
==========================================================

§1  RECORDS
───────────

Every line of an NDJSON source parses into one RECORD.  A record is an
immutable tree built from three node kinds:

    JAtom(v)                 v ∈ {null, bool, number, string}
    JArray(r₁, ..., rₙ)      ordered, n ≥ 0
    JObject{k₁: r₁, ...}     UNORDERED, string keys

Records carry no identity beyond their content.  Two records are the same
record exactly when they are deeply equal (§2), so `==` and `hash()` on
records follow deep equality rather than object identity.


§2  DEEP EQUALITY
─────────────────

    deep_equal(JObject a, JObject b)  ⇔  keys(a) = keys(b)  ∧  ∀k: a[k] ≡ b[k]
    deep_equal(JArray a,  JArray b)   ⇔  |a| = |b|          ∧  ∀i: a[i] ≡ b[i]
    deep_equal(JAtom a,   JAtom b)    ⇔  kind(a) = kind(b)  ∧  a = b

Object key order never matters.  Array order always matters.

Atom kinds are the JSON kinds: null, bool, number, string.  There is ONE
number kind: `1`, `1.0` and `1e0` are the same value, compared by their
mathematical value.  Booleans are their own kind, so `true ≢ 1` even though
Python considers `True == 1`.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, Mapping


# ═══════════════════════════════════════════════════════════════════
#  RECORD TYPES
# ═══════════════════════════════════════════════════════════════════

class JValue:
    """Base class for parsed JSON records."""
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JValue):
            return NotImplemented
        return deep_equal(self, other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        raise NotImplementedError


def atom_kind(val: Any) -> str:
    """Return the JSON kind of an atomic Python value."""
    if val is None:
        return "null"
    # bool is a subclass of int, so it must be checked first
    if type(val) is bool:
        return "bool"
    if isinstance(val, (int, float)):
        return "number"
    if isinstance(val, str):
        return "string"
    raise TypeError(f"Not a JSON atom: {val!r} ({type(val).__name__})")


@dataclass(frozen=True, slots=True, eq=False)
class JAtom(JValue):
    """
    A leaf value: null, bool, number or string.

    Examples:
        JAtom(None)
        JAtom(True)
        JAtom(42)
        JAtom(3.5)
        JAtom("hello")
    """
    val: Any

    def __post_init__(self) -> None:
        atom_kind(self.val)

    @property
    def kind(self) -> str:
        return atom_kind(self.val)

    def __hash__(self) -> int:
        # hash(1) == hash(1.0), so equal numbers hash alike
        return hash((self.kind, self.val))

    def __repr__(self) -> str:
        return f"JAtom({self.val!r})"


@dataclass(frozen=True, slots=True, eq=False)
class JArray(JValue):
    """
    An ordered sequence of records.

    Examples:
        JArray((JAtom(1), JAtom(2)))           # [1, 2]
    """
    items: tuple[JValue, ...]

    def __init__(self, items=()):
        object.__setattr__(self, "items", tuple(items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[JValue]:
        return iter(self.items)

    def __getitem__(self, index: int) -> JValue:
        return self.items[index]

    def __hash__(self) -> int:
        return hash(("array", self.items))

    def __repr__(self) -> str:
        if len(self.items) <= 5:
            return f"JArray({list(self.items)})"
        return f"JArray([{self.items[0]!r}, ..., {self.items[-1]!r}] len={len(self.items)})"


@dataclass(frozen=True, slots=True, eq=False)
class JObject(JValue):
    """
    An UNORDERED mapping of string keys to records.

    Entries are held behind a read-only proxy.  Insertion order is kept for
    display and re-serialization only; it never affects equality.

    Examples:
        JObject({"id": JAtom(1), "name": JAtom("A")})
    """
    entries: Mapping[str, JValue]

    def __init__(self, entries: Mapping[str, JValue] | None = None):
        object.__setattr__(self, "entries", MappingProxyType(dict(entries or {})))

    def __getitem__(self, key: str) -> JValue:
        return self.entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str, default: JValue | None = None) -> JValue | None:
        return self.entries.get(key, default)

    def keys(self):
        return self.entries.keys()

    def items(self):
        return self.entries.items()

    def __hash__(self) -> int:
        return hash(("object", frozenset(self.entries.items())))

    def __repr__(self) -> str:
        if len(self.entries) <= 3:
            return f"JObject({dict(self.entries)})"
        return f"JObject({{...}} len={len(self.entries)})"


# ═══════════════════════════════════════════════════════════════════
#  DEEP EQUALITY
# ═══════════════════════════════════════════════════════════════════

def atoms_equal(a: JAtom, b: JAtom) -> bool:
    """
    Equality of two atoms under the JSON kind rules.

    Numbers compare by value across int/float (1 == 1.0).  Bool and number
    never compare equal, which Python's own `==` would get wrong.
    """
    if a.kind != b.kind:
        return False
    return a.val == b.val


def deep_equal(a: JValue, b: JValue) -> bool:
    """
    Structural equality of two records.

    Objects: same key set and every value deeply equal (order ignored).
    Arrays: same length and elementwise deeply equal (order significant).
    Atoms: see atoms_equal.
    """
    if a is b:
        return True

    if isinstance(a, JObject) and isinstance(b, JObject):
        if len(a.entries) != len(b.entries):
            return False
        for key, a_val in a.entries.items():
            b_val = b.entries.get(key)
            if b_val is None or not deep_equal(a_val, b_val):
                return False
        return True

    if isinstance(a, JArray) and isinstance(b, JArray):
        if len(a.items) != len(b.items):
            return False
        return all(deep_equal(x, y) for x, y in zip(a.items, b.items))

    if isinstance(a, JAtom) and isinstance(b, JAtom):
        return atoms_equal(a, b)

    # Different node kinds
    return False

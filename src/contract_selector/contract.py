"""Contract data model.

A contract is built once (by a loader outside this package, or by hand in
tests) and then only read.  Everything needed to decide *how* a value is
compared is fixed at construction time: a header is either a literal or a
pattern, a matcher carries a ``MatchingType``, and the body template is
copied so later mutations of the caller's dict cannot leak in.

Exports
-------
Contract
    Headers + body template + override matchers.

Header, LiteralHeader, PatternHeader, HeaderConstraint
    Declared header and its tagged constraint.

PathMatcher, MatchingType
    Explicit path → constraint rule that overrides the default body walk.

Variant, TypeOf
    Template leaves: a stub/test value pair and a JSON type placeholder.

stub_side_values, test_side_values
    Resolve every ``Variant`` in a template tree to one of its sides.

compile_pattern, is_pattern
    Normalise ``re`` / ``regex`` / ``str`` patterns to ``regex.Pattern``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

import regex

from .errors import ContractDefinitionError

#: Names returned by JMESPath's ``type()`` function.
JSON_TYPES = frozenset({"string", "number", "boolean", "array", "object", "null"})

# ``re`` and ``regex`` disagree on some flag bits (``re.ASCII`` is
# ``regex.VERSION1``), so flags are translated one by one.
_RE_TO_REGEX_FLAGS = (
    (re.IGNORECASE, regex.IGNORECASE),
    (re.MULTILINE, regex.MULTILINE),
    (re.DOTALL, regex.DOTALL),
    (re.VERBOSE, regex.VERBOSE),
    (re.ASCII, regex.ASCII),
)


def is_pattern(value: Any) -> bool:
    return isinstance(value, (re.Pattern, regex.Pattern))


def compile_pattern(value: Any) -> regex.Pattern:
    """Return *value* as a ``regex.Pattern``.

    Accepts ``regex.Pattern`` (returned as is), ``re.Pattern`` (recompiled
    with translated flags) and ``str`` (compiled).
    """
    if isinstance(value, regex.Pattern):
        return value
    if isinstance(value, re.Pattern):
        flags = 0
        for src, dst in _RE_TO_REGEX_FLAGS:
            if value.flags & src:
                flags |= dst
        return regex.compile(value.pattern, flags)
    if isinstance(value, str):
        try:
            return regex.compile(value)
        except regex.error as e:
            raise ContractDefinitionError(f"invalid pattern {value!r}: {e}") from e
    raise ContractDefinitionError(f"not a pattern: {value!r}")


# ─────────────────────────────────────────────────────────────────────────────
# Template leaves
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Variant:
    """A template value with distinct stub-side and test-side forms.

    Matching inbound traffic always uses ``stub``; ``test`` is what a
    generated test would send.

    ::

        {"id": Variant(stub=any_uuid(), test="3f1c…")}
    """

    stub: Any
    test: Any


@dataclass(frozen=True)
class TypeOf:
    """Placeholder leaf: any value of the given JSON type.

    ::

        TypeOf("number")   # matches 1, 2.5, -3
    """

    json_type: str

    def __post_init__(self) -> None:
        if self.json_type not in JSON_TYPES:
            raise ContractDefinitionError(
                f"unknown JSON type {self.json_type!r}; expected one of {sorted(JSON_TYPES)}"
            )


def _resolve_sides(value: Any, side: str) -> Any:
    if isinstance(value, Variant):
        return _resolve_sides(getattr(value, side), side)
    if isinstance(value, Mapping):
        return {k: _resolve_sides(v, side) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_resolve_sides(x, side) for x in value]
    return value


def stub_side_values(value: Any) -> Any:
    """Replace every ``Variant`` in *value* with its stub side.

    Returns a fresh tree (dicts and lists are rebuilt, tuples become lists);
    leaves are shared.
    """
    return _resolve_sides(value, "stub")


def test_side_values(value: Any) -> Any:
    """Replace every ``Variant`` in *value* with its test side."""
    return _resolve_sides(value, "test")


# pytest would otherwise try to collect the helper above.
test_side_values.__test__ = False  # type: ignore[attr-defined]


def _copy_tree(value: Any) -> Any:
    if isinstance(value, Variant):
        return Variant(_copy_tree(value.stub), _copy_tree(value.test))
    if isinstance(value, Mapping):
        return {k: _copy_tree(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_copy_tree(x) for x in value]
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Headers
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class LiteralHeader:
    """Header value must string-equal ``value``."""

    value: Any

    def describe(self) -> str:
        return f"be equal to [{self.value}]"


@dataclass(frozen=True)
class PatternHeader:
    """Header value must fully match ``pattern``."""

    pattern: regex.Pattern

    def describe(self) -> str:
        return f"match pattern [{self.pattern.pattern}]"


HeaderConstraint = Union[LiteralHeader, PatternHeader]


@dataclass(frozen=True)
class Header:
    """A declared message header.

    Build with ``Header.of`` so the constraint variant is chosen from the
    value type once::

        Header.of("type", "order-created")          # LiteralHeader
        Header.of("version", re.compile(r"\\d+"))   # PatternHeader
    """

    name: str
    constraint: HeaderConstraint

    @classmethod
    def of(cls, name: str, value: Any) -> Header:
        value = stub_side_values(value)
        if value is None:
            raise ContractDefinitionError(f"header {name!r} has no expected value")
        if is_pattern(value):
            return cls(name, PatternHeader(compile_pattern(value)))
        return cls(name, LiteralHeader(value))

    @classmethod
    def matching(cls, name: str, pattern: str) -> Header:
        """Pattern header from pattern source text."""
        return cls(name, PatternHeader(compile_pattern(pattern)))


# ─────────────────────────────────────────────────────────────────────────────
# Override matchers
# ─────────────────────────────────────────────────────────────────────────────


class MatchingType(Enum):
    EQUALITY = "equality"
    TYPE = "type"
    REGEX = "regex"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    NULL = "null"


@dataclass(frozen=True)
class PathMatcher:
    """Explicit constraint on the value(s) at ``path``.

    ``path`` is JSON-path text (``$.a.b``, ``$.items[*].id``,
    ``$['odd key'][0]``).  The value found there is excluded from the
    default structural walk and checked by this matcher instead.

    ``value`` meaning depends on ``type``:

    * ``EQUALITY`` – expected value; ``None`` → taken from the template.
    * ``REGEX``    – pattern (``str`` / compiled), required.
    * ``TYPE``     – ignored; the JSON type is taken from the template.
      ``min_occurrence`` / ``max_occurrence`` bound an array's length.
    """

    path: str
    type: MatchingType
    value: Any = None
    min_occurrence: Optional[int] = None
    max_occurrence: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, MatchingType):
            try:
                object.__setattr__(self, "type", MatchingType(self.type))
            except ValueError as e:
                raise ContractDefinitionError(f"unknown matching type {self.type!r}") from e

        if self.type is MatchingType.REGEX:
            if self.value is None:
                raise ContractDefinitionError(f"regex matcher for {self.path!r} needs a pattern")
            object.__setattr__(self, "value", compile_pattern(self.value))

        has_occurrence = self.min_occurrence is not None or self.max_occurrence is not None
        if has_occurrence and self.type is not MatchingType.TYPE:
            raise ContractDefinitionError(
                f"occurrence bounds are only valid for type matchers (path {self.path!r})"
            )
        for bound in (self.min_occurrence, self.max_occurrence):
            if bound is not None and bound < 0:
                raise ContractDefinitionError(f"negative occurrence bound for {self.path!r}")
        if (
            self.min_occurrence is not None
            and self.max_occurrence is not None
            and self.min_occurrence > self.max_occurrence
        ):
            raise ContractDefinitionError(
                f"min_occurrence > max_occurrence for {self.path!r}"
            )

    # -- constructors -------------------------------------------------------

    @classmethod
    def by_equality(cls, path: str, value: Any = None) -> PathMatcher:
        return cls(path, MatchingType.EQUALITY, value)

    @classmethod
    def by_regex(cls, path: str, pattern: Any) -> PathMatcher:
        return cls(path, MatchingType.REGEX, pattern)

    @classmethod
    def by_type(
            cls,
            path: str,
            *,
            min_occurrence: Optional[int] = None,
            max_occurrence: Optional[int] = None,
    ) -> PathMatcher:
        return cls(path, MatchingType.TYPE, None, min_occurrence, max_occurrence)

    @classmethod
    def by_date(cls, path: str) -> PathMatcher:
        return cls(path, MatchingType.DATE)

    @classmethod
    def by_time(cls, path: str) -> PathMatcher:
        return cls(path, MatchingType.TIME)

    @classmethod
    def by_timestamp(cls, path: str) -> PathMatcher:
        return cls(path, MatchingType.TIMESTAMP)

    @classmethod
    def by_null(cls, path: str) -> PathMatcher:
        return cls(path, MatchingType.NULL)


# ─────────────────────────────────────────────────────────────────────────────
# Contract
# ─────────────────────────────────────────────────────────────────────────────


def _as_headers(headers: Any) -> Tuple[Header, ...]:
    if isinstance(headers, Mapping):
        return tuple(Header.of(name, value) for name, value in headers.items())
    out = []
    for item in headers:
        if isinstance(item, Header):
            out.append(item)
        else:
            name, value = item
            out.append(Header.of(name, value))
    return tuple(out)


@dataclass(frozen=True, eq=False)
class Contract:
    """Immutable description of an expected inbound message.

    Attributes:
        name:          Label used in logs and diagnostics.
        headers:       Declared headers; a mapping or iterable of ``Header``
                       / ``(name, value)`` pairs is accepted and normalised
                       to a tuple of ``Header``.
        body:          Template tree (``None`` → body is not checked).
        body_matchers: Override matchers, evaluated after the default walk.

    Contracts hash and compare by identity.
    """

    name: str = ""
    headers: Tuple[Header, ...] = ()
    body: Any = field(default=None, repr=False)
    body_matchers: Tuple[PathMatcher, ...] = field(default=(), repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _as_headers(self.headers))
        object.__setattr__(self, "body", _copy_tree(self.body))
        matchers: Iterable[PathMatcher] = self.body_matchers or ()
        object.__setattr__(self, "body_matchers", tuple(matchers))

    def __str__(self) -> str:
        return self.name or repr(self)

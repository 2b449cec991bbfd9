"""JSON paths and their conversion into JMESPath body assertions.

Contract authors address body locations with JSON-path text
(``$.a.b``, ``$.items[*].id``, ``$['odd key'][0]``).  Internally a path is a
tuple of segments (``Key``, ``Index``, ``WILDCARD``) so it can be applied to
the template tree *and* rendered as a JMESPath assertion over the message.

Every assertion has the same shape::

    <candidates> | [?<condition>]

*candidates* is the list of nodes that contain the asserted value: the
document itself (``[@]``) when the path has no wildcard, otherwise every
element reached through the wildcards (nested projections are flattened
with ``| []``).  The assertion holds when at least one candidate satisfies
the condition, so array elements are matched existentially and an array's
length is never compared with the template's.

Exports
-------
Key, Index, WILDCARD, Path
    Path segments.

parse_path / render_path
    JSON-path text ↔ segments.

Condition
    What to assert about the value at a path.

assertion
    ``(path, condition)`` → ``PathExpression``.

to_expressions
    Default structural walk of a template: one assertion per leaf.

remove_matching_paths
    Drop the locations covered by override matchers from a template.

values_at
    All template values at a path.

matcher_to_expression
    ``PathMatcher`` (+ template context) → ``PathExpression``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import regex

from .contract import MatchingType, PathMatcher, TypeOf, compile_pattern, is_pattern
from .core import PathExpression
from .errors import ContractDefinitionError, PathExpressionError
from .patterns import pattern_for
from .serialization import to_jsonable


# ─────────────────────────────────────────────────────────────────────────────
# Segments
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Key:
    name: str


@dataclass(frozen=True)
class Index:
    index: int


class _Wildcard:
    def __repr__(self) -> str:
        return "WILDCARD"


WILDCARD = _Wildcard()

Segment = Union[Key, Index, _Wildcard]
Path = Tuple[Segment, ...]

_TOKEN_RE = re.compile(
    r"""
      \[\s*\*\s*\]                              # [*]
    | \[\s*(?P<index>-?\d+)\s*\]                # [0]
    | \[\s*'(?P<sq>(?:[^'\\]|\\.)*)'\s*\]       # ['key']
    | \[\s*"(?P<dq>(?:[^"\\]|\\.)*)"\s*\]       # ["key"]
    | \.(?P<name>[^.\[\]]+)                     # .key  /  .*
    """,
    re.VERBOSE,
)
_ESCAPE_RE = re.compile(r"\\(.)")
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def parse_path(text: str) -> Path:
    """Parse JSON-path text into segments.

    A leading ``$`` is optional (``a.b`` == ``$.a.b``).

    Examples::

        parse_path("$.a.b")           → (Key("a"), Key("b"))
        parse_path("$.items[*].id")   → (Key("items"), WILDCARD, Key("id"))
        parse_path("$['x y'][0]")     → (Key("x y"), Index(0))
        parse_path("$")               → ()

    Only child keys, indexes and wildcards are supported.  Deep scan
    (``$..a``), filters (``$[?(@.x)]``), slices and unions raise
    ``PathExpressionError``; spell such locations out with ``[*]`` instead.
    """
    if not isinstance(text, str):
        raise PathExpressionError(f"path must be a string, got {type(text).__name__}")
    rest = text.strip()
    if rest.startswith("$"):
        rest = rest[1:]
    elif rest and not rest.startswith((".", "[")):
        rest = "." + rest

    segments: List[Segment] = []
    pos = 0
    while pos < len(rest):
        m = _TOKEN_RE.match(rest, pos)
        if m is None:
            raise PathExpressionError(f"cannot parse path {text!r} at offset {pos}")
        if m.group("index") is not None:
            segments.append(Index(int(m.group("index"))))
        elif m.group("sq") is not None:
            segments.append(Key(_ESCAPE_RE.sub(r"\1", m.group("sq"))))
        elif m.group("dq") is not None:
            segments.append(Key(_ESCAPE_RE.sub(r"\1", m.group("dq"))))
        elif m.group("name") is not None and m.group("name") != "*":
            segments.append(Key(m.group("name")))
        else:
            segments.append(WILDCARD)
        pos = m.end()
    return tuple(segments)


def render_path(path: Path) -> str:
    """Inverse of ``parse_path`` (canonical form)."""
    out = ["$"]
    for seg in path:
        if isinstance(seg, Key):
            if _IDENT_RE.match(seg.name):
                out.append("." + seg.name)
            else:
                escaped = seg.name.replace("\\", "\\\\").replace("'", "\\'")
                out.append(f"['{escaped}']")
        elif isinstance(seg, Index):
            out.append(f"[{seg.index}]")
        else:
            out.append("[*]")
    return "".join(out)


def _jmes(path: Iterable[Segment]) -> str:
    out = ["@"]
    for seg in path:
        if isinstance(seg, Key):
            out.append("." + json.dumps(str(seg.name)))
        elif isinstance(seg, Index):
            out.append(f"[{seg.index}]")
        else:
            out.append("[*]")
    return "".join(out)


def _literal(value: Any) -> str:
    """JMESPath JSON literal for *value*."""
    try:
        text = json.dumps(value, default=to_jsonable, sort_keys=True, allow_nan=False)
    except (TypeError, ValueError, ArithmeticError) as e:
        raise ContractDefinitionError(f"template value {value!r} is not JSON: {e}") from e
    return "`" + text.replace("`", "\\`") + "`"


# ─────────────────────────────────────────────────────────────────────────────
# Conditions
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Condition:
    """``render(value_expr)`` → JMESPath boolean expression."""

    render: Callable[[str], str]
    description: str

    @classmethod
    def equals(cls, value: Any) -> Condition:
        lit = _literal(value)
        return cls(lambda v: f"{v} == {lit}", f"== {lit[1:-1]}")

    @classmethod
    def is_null(cls) -> Condition:
        return cls(lambda v: f"{v} == null", "is null")

    @classmethod
    def exists(cls) -> Condition:
        return cls(lambda v: f"{v} != null", "exists")

    @classmethod
    def of_type(cls, json_type: str) -> Condition:
        lit = _literal(json_type)
        return cls(lambda v: f"type({v}) == {lit}", f"is of type {json_type}")

    @classmethod
    def matches(cls, pattern: Any) -> Condition:
        source = _pattern_source(compile_pattern(pattern))
        lit = _literal(source)
        return cls(lambda v: f"regex_match({v}, {lit})", f"matches regex [{source}]")

    @classmethod
    def occurrence(cls, min_occurrence: Optional[int], max_occurrence: Optional[int]) -> Condition:
        def render(v: str) -> str:
            parts = [f"type({v}) == `\"array\"`"]
            if min_occurrence is not None:
                parts.append(f"length({v}) >= `{min_occurrence}`")
            if max_occurrence is not None:
                parts.append(f"length({v}) <= `{max_occurrence}`")
            return " && ".join(parts)

        bounds = []
        if min_occurrence is not None:
            bounds.append(f"size >= {min_occurrence}")
        if max_occurrence is not None:
            bounds.append(f"size <= {max_occurrence}")
        return cls(render, "is an array with " + " and ".join(bounds))


_INLINE_FLAGS = (
    (regex.IGNORECASE, "i"),
    (regex.MULTILINE, "m"),
    (regex.DOTALL, "s"),
    (regex.VERBOSE, "x"),
    (regex.ASCII, "a"),
)


def _pattern_source(pattern: regex.Pattern) -> str:
    """Pattern text with its flags inlined, so it survives as a plain string."""
    letters = "".join(ch for flag, ch in _INLINE_FLAGS if pattern.flags & flag)
    return f"(?{letters}){pattern.pattern}" if letters else pattern.pattern


def _json_type(value: Any) -> Optional[str]:
    if isinstance(value, TypeOf):
        return value.json_type
    if is_pattern(value):
        return "string"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return None


def leaf_condition(value: Any) -> Condition:
    """Condition implied by a template leaf (stub side already resolved)."""
    if is_pattern(value):
        return Condition.matches(value)
    if isinstance(value, TypeOf):
        return Condition.of_type(value.json_type)
    if value is None:
        return Condition.is_null()
    if isinstance(value, Mapping):
        return Condition.of_type("object")
    if isinstance(value, (list, tuple)):
        return Condition.of_type("array")
    return Condition.equals(value)


def assertion(path: Path, condition: Condition) -> PathExpression:
    """Build the ``<candidates> | [?<condition>]`` expression for *path*."""
    last = max((i for i, seg in enumerate(path) if seg is WILDCARD), default=-1)
    if last < 0:
        candidates = "[@]"
        relative: Path = path
    else:
        head = path[:last + 1]
        # every wildcard but the first nests the projection one level deeper
        flattens = sum(1 for seg in head if seg is WILDCARD) - 1
        candidates = _jmes(head) + " | []" * flattens
        relative = path[last + 1:]
    text = f"{candidates} | [?{condition.render(_jmes(relative))}]"
    return PathExpression(text=text, description=f"{render_path(path)} {condition.description}")


# ─────────────────────────────────────────────────────────────────────────────
# Template traversal
# ─────────────────────────────────────────────────────────────────────────────


def iter_leaves(value: Any, path: Path = ()) -> Iterator[Tuple[Path, Any]]:
    """Yield ``(path, leaf)`` for every leaf; empty containers are leaves."""
    if isinstance(value, Mapping) and value:
        for k, v in value.items():
            yield from iter_leaves(v, path + (Key(str(k)),))
    elif isinstance(value, (list, tuple)) and value:
        for item in value:
            yield from iter_leaves(item, path + (WILDCARD,))
    else:
        yield path, value


def to_expressions(template: Any) -> List[PathExpression]:
    """Default structural walk: one assertion per template leaf.

    Duplicates (e.g. identical array elements) are collapsed, order kept.
    ``None`` as the whole template means "body not constrained".
    """
    if template is None:
        return []
    seen: dict[str, PathExpression] = {}
    for path, leaf in iter_leaves(template):
        expr = assertion(path, leaf_condition(leaf))
        seen.setdefault(expr.text, expr)
    return list(seen.values())


def values_at(template: Any, path: Path) -> List[Any]:
    """Every template value reachable through *path* (wildcards fan out)."""
    nodes = [template]
    for seg in path:
        nxt: List[Any] = []
        for node in nodes:
            if isinstance(seg, Key):
                if isinstance(node, Mapping) and seg.name in node:
                    nxt.append(node[seg.name])
            elif isinstance(seg, Index):
                if isinstance(node, list) and -len(node) <= seg.index < len(node):
                    nxt.append(node[seg.index])
            elif isinstance(node, list):
                nxt.extend(node)
        nodes = nxt
    return nodes


_REMOVED = object()


def _mark_removed(node: Any, path: Path) -> None:
    seg, rest = path[0], path[1:]
    if isinstance(seg, Key):
        if not (isinstance(node, dict) and seg.name in node):
            return
        if rest:
            _mark_removed(node[seg.name], rest)
        else:
            node[seg.name] = _REMOVED
    elif isinstance(seg, Index):
        if not (isinstance(node, list) and -len(node) <= seg.index < len(node)):
            return
        if rest:
            _mark_removed(node[seg.index], rest)
        else:
            node[seg.index] = _REMOVED
    elif isinstance(node, list):
        for i, item in enumerate(node):
            if rest:
                _mark_removed(item, rest)
            else:
                node[i] = _REMOVED


def _prune(node: Any) -> Any:
    if isinstance(node, dict):
        return {k: _prune(v) for k, v in node.items() if v is not _REMOVED}
    if isinstance(node, list):
        return [_prune(x) for x in node if x is not _REMOVED]
    return node


def remove_matching_paths(template: Any, paths: Iterable[Path]) -> Any:
    """Return *template* without the values at *paths*.

    *template* must be a freshly built tree (``stub_side_values`` output);
    it is marked in place and then rebuilt.  Paths that do not exist in the
    template are ignored; the root path removes everything (→ ``None``).
    Removals are applied together, so index paths do not shift each other.
    """
    for path in paths:
        if not path:
            return None
        _mark_removed(template, path)
    return _prune(template)


# ─────────────────────────────────────────────────────────────────────────────
# Override matchers
# ─────────────────────────────────────────────────────────────────────────────


def _equality_condition(expected: Any) -> Condition:
    """Whole-value equality; containers compare structurally, not by type."""
    if is_pattern(expected) or isinstance(expected, TypeOf):
        return leaf_condition(expected)
    return Condition.equals(expected)


def matcher_to_expression(matcher: PathMatcher, template: Any) -> PathExpression:
    """Convert one override matcher into an assertion.

    *template* (stub side, before removal) supplies the expected value of
    ``EQUALITY`` matchers without an explicit value and the JSON type of
    ``TYPE`` matchers.
    """
    path = parse_path(matcher.path)
    kind = matcher.type

    if kind is MatchingType.EQUALITY:
        if matcher.value is not None:
            expected = matcher.value
        else:
            found = values_at(template, path)
            if not found:
                raise ContractDefinitionError(
                    f"equality matcher {matcher.path!r} has no value and the body has none at that path"
                )
            expected = found[0]
        condition = _equality_condition(expected)
    elif kind is MatchingType.REGEX:
        condition = Condition.matches(matcher.value)
    elif kind in (MatchingType.DATE, MatchingType.TIME, MatchingType.TIMESTAMP):
        condition = Condition.matches(pattern_for(kind.value))
    elif kind is MatchingType.NULL:
        condition = Condition.is_null()
    elif matcher.min_occurrence is not None or matcher.max_occurrence is not None:
        condition = Condition.occurrence(matcher.min_occurrence, matcher.max_occurrence)
    else:
        found = values_at(template, path)
        json_type = _json_type(found[0]) if found else None
        condition = Condition.of_type(json_type) if json_type else Condition.exists()

    return assertion(path, condition)

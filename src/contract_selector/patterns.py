"""Built-in regular expressions for format placeholders.

These back the ``DATE`` / ``TIME`` / ``TIMESTAMP`` matching types of
``PathMatcher`` and the ``any_*`` helpers that contract authors drop into
a body template where only the *format* of a value is known.

Exports
-------
BUILTIN_PATTERNS
    Dictionary mapping format names to pattern source strings.

pattern_for
    Compile a built-in pattern by name (cached).

any_uuid / any_email / any_iso_date / any_iso_time / any_iso_datetime /
any_number / any_integer / any_boolean / any_non_blank
    Template helpers returning compiled patterns.
"""

from __future__ import annotations

from functools import lru_cache

import regex

# ─────────────────────────────────────────────────────────────────────────────
# Built-in patterns
# ─────────────────────────────────────────────────────────────────────────────

BUILTIN_PATTERNS: dict[str, str] = {
    "uuid": r"[a-fA-F0-9]{8}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{12}",
    "email": r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
    "date": r"(\d\d\d\d)-(0[1-9]|1[012])-(0[1-9]|[12][0-9]|3[01])",
    "time": r"(2[0-3]|[01][0-9]):([0-5][0-9]):([0-5][0-9])",
    "timestamp": (
        r"([0-9]{4})-(1[0-2]|0[1-9])-(3[01]|0[1-9]|[12][0-9])"
        r"T(2[0-3]|[01][0-9]):([0-5][0-9]):([0-5][0-9])(\.\d+)?"
    ),
    "number": r"-?(\d*\.\d+|\d+)",
    "integer": r"-?\d+",
    "boolean": r"(true|false)",
    "non_blank": r"^\s*\S[\S\s]*",
}


@lru_cache(maxsize=None)
def pattern_for(name: str) -> regex.Pattern:
    """Return the compiled built-in pattern called *name*.

    Raises ``KeyError`` for unknown names.
    """
    return regex.compile(BUILTIN_PATTERNS[name])


def any_uuid() -> regex.Pattern:
    return pattern_for("uuid")


def any_email() -> regex.Pattern:
    return pattern_for("email")


def any_iso_date() -> regex.Pattern:
    return pattern_for("date")


def any_iso_time() -> regex.Pattern:
    return pattern_for("time")


def any_iso_datetime() -> regex.Pattern:
    return pattern_for("timestamp")


def any_number() -> regex.Pattern:
    return pattern_for("number")


def any_integer() -> regex.Pattern:
    return pattern_for("integer")


def any_boolean() -> regex.Pattern:
    return pattern_for("boolean")


def any_non_blank() -> regex.Pattern:
    return pattern_for("non_blank")

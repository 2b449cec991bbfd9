"""Concrete header and body matchers.

Exports
-------
HeaderSetMatcher
    Declared headers vs. message headers (literal / anchored pattern).

JsonBodyMatcher
    Template walk + override matchers, evaluated over the parsed payload.
"""

from .body import JsonBodyMatcher, build_expressions
from .headers import HeaderSetMatcher, header_text

__all__ = ["HeaderSetMatcher", "JsonBodyMatcher", "build_expressions", "header_text"]

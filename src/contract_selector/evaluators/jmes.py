"""JMESPath-based PathEvaluator.

Expressions are compiled once (``jmespath.compile``) and kept in a bounded
LRU keyed by expression text.  An expression *holds* when its result is
truthy in the JMESPath sense — for the ``<candidates> | [?cond]`` shape built
by ``paths.assertion`` that means "at least one candidate satisfied cond".
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import jmespath
from jmespath.exceptions import JMESPathError, JMESPathTypeError, ParseError
from jmespath.parser import ParsedResult

from ..core import PathEvaluator, PathExpression, PathResult
from ..errors import PathExpressionError
from ..jmes_ext import JP_OPTIONS


@lru_cache(maxsize=4096)
def _compile(text: str) -> ParsedResult:
    return jmespath.compile(text)


def _truthy(value: Any) -> bool:
    """JMESPath false-like values: null, false, "", [], {}."""
    if value is None or value is False:
        return False
    if isinstance(value, (str, list, dict)) and not value:
        return False
    return True


class JmesPathEvaluator(PathEvaluator):
    """``PathEvaluator`` backed by ``jmespath``.

    Args:
        options: JMESPath options; must register ``regex_match`` (see
                 ``jmes_ext.build_options``).  ``None`` → ``JP_OPTIONS``.
    """

    def __init__(self, options: jmespath.Options | None = None) -> None:
        self.options = options or JP_OPTIONS

    def check(self, expression: PathExpression) -> None:
        self._parse(expression)

    def evaluate(self, document: Any, expression: PathExpression) -> PathResult:
        parsed = self._parse(expression)
        try:
            result = parsed.search(document, options=self.options)
        except JMESPathTypeError as e:
            return PathResult.failed(f"{expression.description} [{expression.text}]: {e}")
        if _truthy(result):
            return PathResult.ok()
        return PathResult.failed(
            f"Parsed JSON doesn't match the JSON path {expression.description} [{expression.text}]"
        )

    # -- internal helpers ---------------------------------------------------

    @staticmethod
    def _parse(expression: PathExpression) -> ParsedResult:
        try:
            return _compile(expression.text)
        except (ParseError, JMESPathError) as e:
            raise PathExpressionError(f"invalid expression {expression.text!r}: {e}") from e

"""Body comparison: default structural walk + override matchers.

For each contract the assertions are built once and memoized::

    template  = stub_side_values(contract.body)
    remaining = remove_matching_paths(template, <paths of body_matchers>)
    defaults  = to_expressions(remaining)          ← one per leaf, no sizes
    overrides = [matcher_to_expression(m, template) for m in body_matchers]

At match time the payload is serialized and parsed once, and every
assertion is evaluated; the body matches iff all of them hold.  Failing
assertions do not stop the others, so the diagnostics are complete.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from ..contract import Contract, stub_side_values
from ..core import BodyMatch, BodyMatcher, PathEvaluator, PathExpression, Serializer
from ..paths import matcher_to_expression, parse_path, remove_matching_paths, to_expressions

logger = logging.getLogger(__name__)


def build_expressions(contract: Contract) -> Tuple[PathExpression, ...]:
    """All body assertions of *contract*, defaults first."""
    template = stub_side_values(contract.body)
    overrides = [matcher_to_expression(m, template) for m in contract.body_matchers]
    covered = [parse_path(m.path) for m in contract.body_matchers]
    remaining = remove_matching_paths(stub_side_values(contract.body), covered)
    return tuple(to_expressions(remaining)) + tuple(overrides)


class JsonBodyMatcher(BodyMatcher):
    """Default ``BodyMatcher``.

    Args:
        serializer: Payload → JSON text.
        evaluator:  Evaluates one assertion against the parsed payload.
    """

    def __init__(self, *, serializer: Serializer, evaluator: PathEvaluator) -> None:
        self.serializer = serializer
        self.evaluator = evaluator
        self._expressions: Dict[Contract, Tuple[PathExpression, ...]] = {}
        self._lock = threading.Lock()

    def expressions_for(self, contract: Contract) -> Tuple[PathExpression, ...]:
        with self._lock:
            cached: Optional[Tuple[PathExpression, ...]] = self._expressions.get(contract)
        if cached is not None:
            return cached

        expressions = build_expressions(contract)
        for expr in expressions:
            self.evaluator.check(expr)
        logger.debug("Contract [%s] compiled into %d body assertions", contract, len(expressions))

        with self._lock:
            return self._expressions.setdefault(contract, expressions)

    def parse(self, message: Any) -> Any:
        return self.serializer.to_document(getattr(message, "payload", None))

    def match_document(self, document: Any, contract: Contract) -> BodyMatch:
        unmatched: List[str] = []
        matches = True
        for expr in self.expressions_for(contract):
            result = self.evaluator.evaluate(document, expr)
            if not result.matched:
                matches = False
                unmatched.append(result.reason or str(expr))
        return BodyMatch(matches, unmatched)

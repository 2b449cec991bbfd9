from __future__ import annotations

import json
from typing import Any, Optional

import jmespath
import regex
from jmespath import functions as _jp_funcs


def text_form(value: Any) -> Optional[str]:
    """String form a pattern is matched against (``None`` for containers/null)."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or isinstance(value, (int, float)):
        return json.dumps(value)
    return None


class MatcherFunctions(_jp_funcs.Functions):
    """Custom JMESPath functions used by generated body assertions."""

    def __init__(self, regex_timeout: float = 2.0) -> None:
        self.regex_timeout = regex_timeout

    @_jp_funcs.signature({'types': []}, {'types': ['string']})
    def _func_regex_match(self, value: Any, pattern: str) -> bool:
        """True if the text form of *value* fully matches *pattern*."""
        text = text_form(value)
        if text is None:
            return False
        try:
            return regex.fullmatch(pattern, text, timeout=self.regex_timeout) is not None
        except TimeoutError:
            raise TimeoutError(f"Regex operation exceeded timeout of {self.regex_timeout}s")


def build_options(regex_timeout: float = 2.0) -> jmespath.Options:
    return jmespath.Options(custom_functions=MatcherFunctions(regex_timeout))


JP_OPTIONS = build_options()

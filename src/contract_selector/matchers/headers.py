"""Header comparison.

Every declared header is checked (no short-circuit) so the diagnostics list
all of them; headers the contract does not declare are ignored.

Exports
-------
HeaderSetMatcher
    Default ``HeaderMatcher``.

header_text
    String form used for both literal comparison and pattern matching.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..contract import Contract, Header, LiteralHeader, PatternHeader
from ..core import HeaderMatcher


def header_text(value: Any) -> Optional[str]:
    """String form of a header value (``None`` stays ``None``).

    ::

        header_text(True)     → "true"
        header_text(b"v1")    → "v1"
        header_text(42)       → "42"
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return str(value)


class HeaderSetMatcher(HeaderMatcher):
    """Literal headers compare string forms; pattern headers must match the
    whole string form (anchored).  A missing header is a mismatch for both.

    Args:
        regex_timeout: Seconds allowed per pattern match (``TimeoutError``
                       once exceeded).
    """

    def __init__(self, regex_timeout: float = 2.0) -> None:
        self.regex_timeout = regex_timeout

    def headers_match(self, message: Any, contract: Contract) -> List[str]:
        headers: Mapping[str, Any] = getattr(message, "headers", None) or {}
        unmatched: List[str] = []
        for header in contract.headers:
            actual = header_text(headers.get(header.name))
            if not self._matches(header, actual):
                unmatched.append(
                    f"Header with name [{header.name}] was supposed to "
                    f"{header.constraint.describe()} but the value is [{actual}]"
                )
        return unmatched

    def _matches(self, header: Header, actual: Optional[str]) -> bool:
        if actual is None:
            return False
        constraint = header.constraint
        if isinstance(constraint, PatternHeader):
            try:
                return constraint.pattern.fullmatch(actual, timeout=self.regex_timeout) is not None
            except TimeoutError:
                raise TimeoutError(f"Regex operation exceeded timeout of {self.regex_timeout}s")
        if isinstance(constraint, LiteralHeader):
            return actual == header_text(constraint.value)
        raise TypeError(f"unsupported header constraint: {constraint!r}")

"""Core abstractions, result types, and the ContractSelector.

This module owns every *interface* in the system.  Nothing here depends on a
concrete implementation — concrete classes live in the sub-packages
(``matchers``, ``evaluators``) and in ``cache`` / ``serialization``; the
``factory`` module wires them together.

Decision flow (``ContractSelector.matching_contract`` entry point)::

    message
      │
      ▼
    MatchCache.lookup(message)            ← hit (contract or NO_MATCH) → return
      │ miss
      ▼
    for contract in contracts:            ← declaration order, first match wins
        HeaderMatcher.headers_match(message, contract)
            └─ mismatches → next contract
        document = BodyMatcher.parse(message)       ← first header match only
        BodyMatcher.match_document(document, contract)
            └─ PathEvaluator.evaluate(document, expr) for every expr
      │
      ▼
    MatchCache.store(message, contract or None)
"""

from __future__ import annotations

import itertools
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterable, List, Mapping, Optional, Tuple, Union

from .contract import Contract
from .errors import SerializationError

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Message
# ─────────────────────────────────────────────────────────────────────────────

_message_ids = itertools.count(1)


def _next_message_id() -> int:
    return next(_message_ids)


@dataclass(eq=False)
class Message:
    """Inbound message envelope.

    Attributes:
        payload: Any JSON-serializable object, or JSON text (``str``/``bytes``).
        headers: Header name → arbitrary value.
        id:      Cache key.  Defaults to a process-wide sequence number, so
                 two message objects never share a cache entry unless the
                 caller gives them the same id on purpose (e.g. a broker's
                 delivery id for redeliveries).

    Messages compare by identity.
    """

    payload: Any = None
    headers: Mapping[str, Any] = field(default_factory=dict)
    id: Hashable = field(default_factory=_next_message_id)


# ─────────────────────────────────────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────────────────────────────────────


class _NoMatch:
    """Cache marker for "computed, no contract matched"."""

    _instance: Optional['_NoMatch'] = None

    def __new__(cls) -> '_NoMatch':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_MATCH"

    def __bool__(self) -> bool:
        return False


NO_MATCH = _NoMatch()

CachedResult = Union[Contract, _NoMatch]


@dataclass(frozen=True)
class PathExpression:
    """A compiled body assertion.

    Attributes:
        text:        JMESPath expression; the assertion holds when its result
                     is truthy in the JMESPath sense (non-empty list, …).
        description: JSON-path-like rendering for diagnostics, e.g.
                     ``$.items[*].id == 1``.
    """

    text: str
    description: str

    def __str__(self) -> str:
        return self.description


@dataclass(frozen=True)
class PathResult:
    """Outcome of evaluating one ``PathExpression``."""

    matched: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> PathResult:
        return cls(True)

    @classmethod
    def failed(cls, reason: str) -> PathResult:
        return cls(False, reason)


@dataclass
class BodyMatch:
    matched: bool
    mismatches: List[str] = field(default_factory=list)


@dataclass
class ContractMatch:
    """Diagnostic record of one contract evaluated against one message."""

    contract: Contract
    matched: bool
    mismatches: List[str] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Collaborator interfaces
# ─────────────────────────────────────────────────────────────────────────────


class Serializer(ABC):
    """Turns a payload into canonical JSON text.

    Default implementation: ``serialization.JsonSerializer``.
    """

    @abstractmethod
    def to_json(self, payload: Any) -> str:
        """Return JSON text.  Raises ``SerializationError`` on failure."""

    def to_document(self, payload: Any) -> Any:
        """Serialize and parse back into plain JSON values."""
        text = self.to_json(payload)
        try:
            return json.loads(text)
        except ValueError as e:
            raise SerializationError(f"payload is not valid JSON: {e}") from e


class PathEvaluator(ABC):
    """Black-box predicate over a parsed JSON document.

    Default implementation: ``evaluators.jmes.JmesPathEvaluator``.
    """

    @abstractmethod
    def evaluate(self, document: Any, expression: PathExpression) -> PathResult:
        """Return ``PathResult.ok()`` or ``PathResult.failed(reason)``.

        Only a malformed expression raises (``PathExpressionError``).
        """

    def check(self, expression: PathExpression) -> None:
        """Validate *expression* up front.  Default: no-op."""


class HeaderMatcher(ABC):
    """Default implementation: ``matchers.headers.HeaderSetMatcher``."""

    @abstractmethod
    def headers_match(self, message: Any, contract: Contract) -> List[str]:
        """Return one mismatch reason per failed header (empty → match)."""


class BodyMatcher(ABC):
    """Default implementation: ``matchers.body.JsonBodyMatcher``."""

    @abstractmethod
    def expressions_for(self, contract: Contract) -> Tuple[PathExpression, ...]:
        """All body assertions of *contract* (default walk + overrides)."""

    @abstractmethod
    def parse(self, message: Any) -> Any:
        """Serialize and parse the message payload."""

    @abstractmethod
    def match_document(self, document: Any, contract: Contract) -> BodyMatch:
        """Evaluate every assertion of *contract* against *document*."""

    def body_matches(self, message: Any, contract: Contract) -> BodyMatch:
        return self.match_document(self.parse(message), contract)


class MatchCache(ABC):
    """Per-message memo of selection outcomes.

    Default implementation: ``cache.LruMatchCache``.
    """

    @abstractmethod
    def lookup(self, message: Any) -> Optional[CachedResult]:
        """``None`` if absent, ``NO_MATCH`` or the matched contract otherwise."""

    @abstractmethod
    def store(self, message: Any, contract: Optional[Contract]) -> None:
        """Record an outcome; ``None`` is stored as ``NO_MATCH``."""

    @abstractmethod
    def update(self, message: Any, contract: Optional[Contract]) -> None:
        """Overwrite the entry for *message*."""

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def __len__(self) -> int: ...


# ─────────────────────────────────────────────────────────────────────────────
# ContractSelector — orchestrator / public entry point
# ─────────────────────────────────────────────────────────────────────────────


class _LazyDocument:
    """Parses the payload on first use, at most once per selection."""

    def __init__(self, body_matcher: BodyMatcher, message: Any) -> None:
        self._body_matcher = body_matcher
        self._message = message
        self._parsed = False
        self._document: Any = None

    def get(self) -> Any:
        if not self._parsed:
            self._document = self._body_matcher.parse(self._message)
            self._parsed = True
        return self._document


class ContractSelector:
    """Picks the first contract a message conforms to.

    Contracts are scanned in the order given; the first one whose headers
    *and* body match wins, even if later contracts would match too.  The
    outcome, including "nothing matched", is cached per message.

    Body assertions of every contract are compiled in ``__init__`` so a
    broken contract fails at wiring time (``ContractDefinitionError`` /
    ``PathExpressionError``), not on the first message.

    ::

        selector = build_selector([created, updated])
        if selector.accept(message):
            contract = selector.matching_contract(message)
    """

    def __init__(
            self,
            contracts: Union[Contract, Iterable[Contract]],
            *,
            header_matcher: HeaderMatcher,
            body_matcher: BodyMatcher,
            cache: MatchCache,
    ) -> None:
        if isinstance(contracts, Contract):
            contracts = [contracts]
        self.contracts: Tuple[Contract, ...] = tuple(contracts)
        self.header_matcher = header_matcher
        self.body_matcher = body_matcher
        self.cache = cache
        for contract in self.contracts:
            self.body_matcher.expressions_for(contract)

    # -- public API ---------------------------------------------------------

    def accept(self, message: Any) -> bool:
        """``True`` iff some contract matches *message*."""
        return self.matching_contract(message) is not None

    is_acceptable = accept
    __call__ = accept

    def matching_contract(self, message: Any) -> Optional[Contract]:
        """Return the first matching contract, or ``None``.

        Raises ``SerializationError`` when some contract's headers match but
        the payload cannot be serialized; nothing is cached in that case.
        """
        cached = self.cache.lookup(message)
        if cached is not None:
            logger.debug("Cache hit for message [%s]: %s", _message_label(message), cached)
            return None if cached is NO_MATCH else cached

        contract = self._select(message)
        self.cache.store(message, contract)
        return contract

    def update_cache(self, message: Any, contract: Optional[Contract]) -> None:
        """Seed or correct the cached outcome for *message*."""
        self.cache.update(message, contract)

    def explain(self, message: Any) -> List[ContractMatch]:
        """Evaluate *every* contract and return the diagnostics.

        Neither reads nor writes the cache.
        """
        document = _LazyDocument(self.body_matcher, message)
        return [self._match_contract(message, contract, document) for contract in self.contracts]

    # -- internals ----------------------------------------------------------

    def _select(self, message: Any) -> Optional[Contract]:
        document = _LazyDocument(self.body_matcher, message)
        for contract in self.contracts:
            if self._match_contract(message, contract, document).matched:
                logger.debug(
                    "Message [%s] matched contract [%s]", _message_label(message), contract
                )
                return contract
        logger.debug("Message [%s] matched none of %d contracts",
                     _message_label(message), len(self.contracts))
        return None

    def _match_contract(
            self,
            message: Any,
            contract: Contract,
            document: _LazyDocument,
    ) -> ContractMatch:
        unmatched_headers = self.header_matcher.headers_match(message, contract)
        if unmatched_headers:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Contract [%s] hasn't matched the following headers %s",
                             contract, unmatched_headers)
            return ContractMatch(contract, False, unmatched_headers)

        # a payload that cannot be serialized is an error even for header-only contracts
        parsed = document.get()
        if not self.body_matcher.expressions_for(contract):
            return ContractMatch(contract, True)

        body = self.body_matcher.match_document(parsed, contract)
        if body.mismatches and logger.isEnabledFor(logging.DEBUG):
            logger.debug("Contract [%s] didn't match the body due to %s",
                         contract, body.mismatches)
        return ContractMatch(contract, body.matched, body.mismatches)


def _message_label(message: Any) -> Any:
    return getattr(message, "id", None) or id(message)

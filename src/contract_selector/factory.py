"""Selector factory — the single place where all pieces are assembled.

``build_selector`` is the recommended entry point for users who want a fully
functional ``ContractSelector`` without hand-wiring every collaborator.

Customisation points:

* **cache_size**    – LRU bound of the per-message cache (``None`` → unbounded).
* **regex_timeout** – seconds allowed per regex match (headers and body).
* **key**           – message → cache key (default: ``message.id``).
* **serializer**    – payload → JSON text.
* **evaluator**     – path assertion evaluator.
* **cache**         – a ready ``MatchCache`` (e.g. shared between selectors);
                      overrides *cache_size* and *key*.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Iterable, Optional, Union

from .cache import LruMatchCache, message_id
from .contract import Contract
from .core import ContractSelector, MatchCache, PathEvaluator, Serializer
from .evaluators.jmes import JmesPathEvaluator
from .jmes_ext import build_options
from .matchers.body import JsonBodyMatcher
from .matchers.headers import HeaderSetMatcher
from .serialization import JsonSerializer


def build_selector(
        contracts: Union[Contract, Iterable[Contract]],
        *,
        cache_size: Optional[int] = 1024,
        regex_timeout: float = 2.0,
        key: Optional[Callable[[Any], Hashable]] = None,
        serializer: Optional[Serializer] = None,
        evaluator: Optional[PathEvaluator] = None,
        cache: Optional[MatchCache] = None,
) -> ContractSelector:
    """Assemble a ``ContractSelector`` with the standard collaborators.

    What gets wired
    ---------------
    header_matcher
        ``HeaderSetMatcher(regex_timeout)``.

    body_matcher
        ``JsonBodyMatcher`` with ``JsonSerializer`` and
        ``JmesPathEvaluator`` (``regex_match`` registered with the same
        timeout).

    cache
        ``LruMatchCache(cache_size, key=key or message_id)``.

    Returns:
        Fully wired ``ContractSelector``.  Contracts are compiled here, so an
        invalid contract raises ``ContractDefinitionError`` immediately.

    Example::

        selector = build_selector([
            Contract(name="created", headers={"type": "created"}, body={"id": 1}),
        ])
        selector.accept(Message(payload={"id": 1}, headers={"type": "created"}))
        # → True
    """
    if cache is None:
        cache = LruMatchCache(cache_size, key=key or message_id)

    body_matcher = JsonBodyMatcher(
        serializer=serializer or JsonSerializer(),
        evaluator=evaluator or JmesPathEvaluator(build_options(regex_timeout)),
    )

    return ContractSelector(
        contracts,
        header_matcher=HeaderSetMatcher(regex_timeout),
        body_matcher=body_matcher,
        cache=cache,
    )

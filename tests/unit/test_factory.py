"""Tests for build_selector factory."""

from decimal import Decimal

import pytest

from contract_selector import (
    Contract,
    ContractDefinitionError,
    ContractSelector,
    HeaderSetMatcher,
    JmesPathEvaluator,
    JsonBodyMatcher,
    JsonSerializer,
    LruMatchCache,
    Message,
    PathEvaluator,
    PathExpressionError,
    PathMatcher,
    PathResult,
    build_selector,
)


class AlwaysPass(PathEvaluator):
    """Evaluator that accepts every assertion."""

    def evaluate(self, document, expression):
        return PathResult.ok()


class TestBuildSelector:
    """Test build_selector wiring."""

    def test_default_collaborators(self):
        """Standard implementations are wired."""
        selector = build_selector([Contract(name="c")])

        assert isinstance(selector, ContractSelector)
        assert isinstance(selector.header_matcher, HeaderSetMatcher)
        assert isinstance(selector.body_matcher, JsonBodyMatcher)
        assert isinstance(selector.body_matcher.serializer, JsonSerializer)
        assert isinstance(selector.body_matcher.evaluator, JmesPathEvaluator)
        assert isinstance(selector.cache, LruMatchCache)

    def test_builds_working_selector(self):
        """Factory output selects contracts."""
        contract = Contract(name="created", headers={"type": "created"}, body={"id": 1})
        selector = build_selector([contract])

        assert selector.accept(Message(payload={"id": 1}, headers={"type": "created"}))

    def test_cache_size(self):
        """cache_size bounds the cache."""
        selector = build_selector([Contract(name="c")], cache_size=2)
        for _ in range(5):
            selector.matching_contract(Message())

        assert len(selector.cache) == 2

    def test_custom_key(self):
        """key selects the cache key."""
        contract = Contract(name="c", headers={"type": "x"})
        selector = build_selector([contract], key=lambda m: m.headers.get("msg-id"))

        selector.matching_contract(Message(headers={"type": "x", "msg-id": "1"}))

        assert selector.matching_contract(Message(headers={"msg-id": "1"})) is contract

    def test_custom_evaluator(self):
        """A supplied evaluator replaces JMESPath."""
        contract = Contract(name="c", body={"a": 1})
        selector = build_selector([contract], evaluator=AlwaysPass())

        assert selector.matching_contract(Message(payload={"a": 2})) is contract

    def test_supplied_cache_used(self):
        """A supplied cache overrides cache_size."""
        cache = LruMatchCache(max_entries=None)

        assert build_selector([], cache=cache, cache_size=1).cache is cache


class TestFailFast:
    """Test that broken contracts are rejected at build time."""

    def test_equality_matcher_without_value(self):
        """Equality matcher on a path the body lacks."""
        contract = Contract(name="c", body={"a": 1}, body_matchers=[PathMatcher.by_equality("$.missing")])

        with pytest.raises(ContractDefinitionError):
            build_selector([contract])

    def test_unparseable_matcher_path(self):
        """Malformed matcher paths."""
        contract = Contract(name="c", body={"a": 1}, body_matchers=[PathMatcher.by_null("$.a[")])

        with pytest.raises(PathExpressionError):
            build_selector([contract])

    def test_invalid_regex(self):
        """Invalid regex patterns fail when the contract is defined."""
        with pytest.raises(ContractDefinitionError):
            PathMatcher.by_regex("$.a", "(unclosed")

    def test_non_json_template_value(self):
        """Template leaves must be JSON values."""
        contract = Contract(name="c", body={"a": object()})

        with pytest.raises(ContractDefinitionError):
            build_selector([contract])

    def test_non_finite_decimal_template_value(self):
        """Infinite decimals in the template are rejected."""
        contract = Contract(name="c", body={"a": Decimal("Infinity")})

        with pytest.raises(ContractDefinitionError):
            build_selector([contract])

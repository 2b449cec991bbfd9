"""Tests for JSON path parsing and assertion building."""

import re

import pytest

from contract_selector import PathExpressionError, PathMatcher, ContractDefinitionError, TypeOf
from contract_selector.paths import (
    WILDCARD,
    Condition,
    Index,
    Key,
    assertion,
    iter_leaves,
    matcher_to_expression,
    parse_path,
    remove_matching_paths,
    render_path,
    to_expressions,
    values_at,
)


class TestParsePath:
    """Test parse_path()."""

    def test_root(self):
        """$ alone is the empty path."""
        assert parse_path("$") == ()

    def test_dotted_keys(self):
        """Dot notation."""
        assert parse_path("$.a.b") == (Key("a"), Key("b"))

    def test_dollar_optional(self):
        """Leading $ may be omitted."""
        assert parse_path("a.b") == (Key("a"), Key("b"))

    def test_wildcards(self):
        """[*] and .* are wildcards."""
        assert parse_path("$.items[*].id") == (Key("items"), WILDCARD, Key("id"))
        assert parse_path("$.items.*") == (Key("items"), WILDCARD)

    def test_indexes(self):
        """Numeric indexes, including negative ones."""
        assert parse_path("$.a[0][-1]") == (Key("a"), Index(0), Index(-1))

    def test_bracket_keys(self):
        """Quoted keys in brackets, with escapes."""
        assert parse_path("$['odd key']") == (Key("odd key"),)
        assert parse_path('$["a.b"]') == (Key("a.b"),)
        assert parse_path(r"$['it\'s']") == (Key("it's"),)

    def test_malformed_raises(self):
        """Unparseable text raises PathExpressionError."""
        with pytest.raises(PathExpressionError):
            parse_path("$..a")
        with pytest.raises(PathExpressionError):
            parse_path("$.a[")

    def test_unsupported_forms_raise(self):
        """Deep scan, filters and slices are not supported."""
        for text in ("$..a", "$[?(@.x)]", "$.a[0:2]", "$['a','b']"):
            with pytest.raises(PathExpressionError):
                parse_path(text)

    def test_non_string_raises(self):
        """Paths must be strings."""
        with pytest.raises(PathExpressionError):
            parse_path(None)


class TestRenderPath:
    """Test render_path()."""

    def test_canonical_form(self):
        """Identifiers use dots, everything else brackets."""
        path = (Key("items"), WILDCARD, Key("odd key"), Index(2))

        assert render_path(path) == "$.items[*]['odd key'][2]"

    def test_reparse(self):
        """Rendered paths parse back to the same segments."""
        path = (Key("a"), Key("it's"), WILDCARD, Index(0))

        assert parse_path(render_path(path)) == path


class TestAssertion:
    """Test assertion()."""

    def test_without_wildcard_wraps_document(self):
        """Plain paths filter over [@]."""
        expr = assertion((Key("a"),), Condition.equals(1))

        assert expr.text == '[@] | [?@."a" == `1`]'
        assert expr.description == "$.a == 1"

    def test_wildcard_splits_candidates(self):
        """The last wildcard separates candidates from the relative path."""
        expr = assertion((Key("items"), WILDCARD, Key("id")), Condition.equals("x"))

        assert expr.text == '@."items"[*] | [?@."id" == `"x"`]'

    def test_nested_wildcards_flatten(self):
        """Each extra wildcard adds one flatten step."""
        expr = assertion((Key("m"), WILDCARD, WILDCARD), Condition.equals(1))

        assert expr.text == '@."m"[*][*] | [] | [?@ == `1`]'

    def test_backticks_escaped(self):
        """Backticks inside literals are escaped."""
        expr = assertion((Key("a"),), Condition.equals("x`y"))

        assert "\\`" in expr.text


class TestIterLeaves:
    """Test iter_leaves()."""

    def test_leaves_and_empty_containers(self):
        """Scalars and empty containers are leaves."""
        leaves = list(iter_leaves({"a": 1, "b": [], "c": {"d": [2]}}))

        assert leaves == [
            ((Key("a"),), 1),
            ((Key("b"),), []),
            ((Key("c"), Key("d"), WILDCARD), 2),
        ]


class TestToExpressions:
    """Test the default structural walk."""

    def test_none_template_has_no_expressions(self):
        """None means the body is unconstrained."""
        assert to_expressions(None) == []

    def test_one_expression_per_leaf(self):
        """Every leaf produces one assertion."""
        exprs = to_expressions({"a": 1, "b": {"c": "x"}})

        assert [e.description for e in exprs] == ['$.a == 1', '$.b.c == "x"']

    def test_duplicate_elements_collapsed(self):
        """Identical array elements give one assertion."""
        exprs = to_expressions({"tags": ["x", "x", "y"]})

        assert len(exprs) == 2

    def test_no_size_assertions(self):
        """Array sizes never appear in default assertions."""
        exprs = to_expressions({"items": [1, 2, 3]})

        assert all("length" not in e.text for e in exprs)

    def test_placeholders(self):
        """TypeOf and None leaves produce type / null assertions."""
        exprs = to_expressions({"n": TypeOf("number"), "z": None})

        assert exprs[0].description == "$.n is of type number"
        assert exprs[1].description == "$.z is null"


class TestValuesAt:
    """Test values_at()."""

    def test_fan_out(self):
        """Wildcards collect every element."""
        template = {"items": [{"id": 1}, {"id": 2}, {"x": 3}]}

        assert values_at(template, parse_path("$.items[*].id")) == [1, 2]

    def test_missing_path(self):
        """Missing paths give an empty list."""
        assert values_at({"a": 1}, parse_path("$.b.c")) == []

    def test_index(self):
        """Indexes select a single element."""
        assert values_at({"a": [5, 6]}, parse_path("$.a[1]")) == [6]


class TestRemoveMatchingPaths:
    """Test remove_matching_paths()."""

    def test_removes_key(self):
        """A covered key disappears."""
        template = {"a": 1, "b": 2}

        assert remove_matching_paths(template, [parse_path("$.a")]) == {"b": 2}

    def test_wildcard_removes_from_every_element(self):
        """Wildcards apply to all elements."""
        template = {"items": [{"id": 1, "n": 1}, {"id": 2, "n": 2}]}

        result = remove_matching_paths(template, [parse_path("$.items[*].id")])

        assert result == {"items": [{"n": 1}, {"n": 2}]}

    def test_indexes_do_not_shift(self):
        """Several index removals refer to the original positions."""
        template = {"a": [10, 20, 30]}

        result = remove_matching_paths(template, [parse_path("$.a[0]"), parse_path("$.a[1]")])

        assert result == {"a": [30]}

    def test_missing_path_ignored(self):
        """Paths absent from the template change nothing."""
        assert remove_matching_paths({"a": 1}, [parse_path("$.x.y")]) == {"a": 1}

    def test_root_removes_everything(self):
        """The root path removes the whole template."""
        assert remove_matching_paths({"a": 1}, [parse_path("$")]) is None


class TestMatcherToExpression:
    """Test matcher_to_expression()."""

    def test_regex(self):
        """Regex matchers use regex_match."""
        expr = matcher_to_expression(PathMatcher.by_regex("$.a", "[a-z]+"), {"a": "x"})

        assert "regex_match(" in expr.text
        assert expr.description == "$.a matches regex [[a-z]+]"

    def test_equality_from_template(self):
        """Equality without value takes the template value."""
        expr = matcher_to_expression(PathMatcher.by_equality("$.a"), {"a": 7})

        assert expr.description == "$.a == 7"

    def test_equality_explicit_value(self):
        """An explicit value wins over the template."""
        expr = matcher_to_expression(PathMatcher.by_equality("$.a", 8), {"a": 7})

        assert expr.description == "$.a == 8"

    def test_equality_explicit_object(self):
        """Container values compare structurally, not by type."""
        expr = matcher_to_expression(PathMatcher.by_equality("$.a", {"x": 1}), {"a": {"x": 1}})

        assert expr.description == '$.a == {"x": 1}'
        assert "type(" not in expr.text

    def test_equality_array_from_template(self):
        """Template arrays are compared as whole values."""
        expr = matcher_to_expression(PathMatcher.by_equality("$.a"), {"a": [1, 2]})

        assert expr.description == "$.a == [1, 2]"

    def test_equality_without_any_value_raises(self):
        """No explicit value and nothing in the template is an error."""
        with pytest.raises(ContractDefinitionError):
            matcher_to_expression(PathMatcher.by_equality("$.missing"), {"a": 1})

    def test_type_from_template(self):
        """Type matchers assert the template value's JSON type."""
        expr = matcher_to_expression(PathMatcher.by_type("$.a"), {"a": "text"})

        assert expr.description == "$.a is of type string"

    def test_type_from_pattern_leaf(self):
        """Pattern leaves are strings."""
        expr = matcher_to_expression(PathMatcher.by_type("$.a"), {"a": re.compile("[a-z]+")})

        assert expr.description == "$.a is of type string"

    def test_type_without_template_value_checks_existence(self):
        """Unknown type falls back to existence."""
        expr = matcher_to_expression(PathMatcher.by_type("$.a"), {})

        assert expr.description == "$.a exists"

    def test_type_with_occurrence(self):
        """Occurrence bounds become length checks."""
        expr = matcher_to_expression(
            PathMatcher.by_type("$.items", min_occurrence=1, max_occurrence=3), {"items": [1]}
        )

        assert "length(" in expr.text
        assert expr.description == "$.items is an array with size >= 1 and size <= 3"

    def test_null(self):
        """Null matchers assert null."""
        expr = matcher_to_expression(PathMatcher.by_null("$.a"), {"a": None})

        assert expr.description == "$.a is null"

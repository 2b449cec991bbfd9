from .cache import LruMatchCache, message_id
from .contract import (
    Contract,
    Header,
    HeaderConstraint,
    LiteralHeader,
    MatchingType,
    PathMatcher,
    PatternHeader,
    TypeOf,
    Variant,
    compile_pattern,
    stub_side_values,
    test_side_values,
)
from .core import (
    NO_MATCH,
    BodyMatch,
    BodyMatcher,
    ContractMatch,
    ContractSelector,
    HeaderMatcher,
    MatchCache,
    Message,
    PathEvaluator,
    PathExpression,
    PathResult,
    Serializer,
)
from .errors import (
    ContractDefinitionError,
    ContractSelectorError,
    MessageKeyError,
    PathExpressionError,
    SerializationError,
)
from .evaluators import JmesPathEvaluator
from .factory import build_selector
from .matchers import HeaderSetMatcher, JsonBodyMatcher
from .patterns import (
    any_boolean,
    any_email,
    any_integer,
    any_iso_date,
    any_iso_datetime,
    any_iso_time,
    any_non_blank,
    any_number,
    any_uuid,
)
from .serialization import JsonSerializer

__all__ = [
    # core
    "ContractSelector",
    "Message",
    "NO_MATCH",
    "BodyMatch",
    "ContractMatch",
    "PathExpression",
    "PathResult",
    "HeaderMatcher",
    "BodyMatcher",
    "PathEvaluator",
    "Serializer",
    "MatchCache",
    # contract model
    "Contract",
    "Header",
    "HeaderConstraint",
    "LiteralHeader",
    "PatternHeader",
    "PathMatcher",
    "MatchingType",
    "Variant",
    "TypeOf",
    "compile_pattern",
    "stub_side_values",
    "test_side_values",
    # implementations
    "LruMatchCache",
    "message_id",
    "HeaderSetMatcher",
    "JsonBodyMatcher",
    "JmesPathEvaluator",
    "JsonSerializer",
    # factory
    "build_selector",
    # patterns
    "any_uuid",
    "any_email",
    "any_iso_date",
    "any_iso_time",
    "any_iso_datetime",
    "any_number",
    "any_integer",
    "any_boolean",
    "any_non_blank",
    # errors
    "ContractSelectorError",
    "SerializationError",
    "PathExpressionError",
    "ContractDefinitionError",
    "MessageKeyError",
]

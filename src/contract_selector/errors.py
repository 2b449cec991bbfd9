"""Exception hierarchy.

Only conditions that make a message or a contract impossible to evaluate
are raised.  An ordinary mismatch is never an exception: headers report
mismatches as strings and path evaluation returns a ``PathResult``.

Exports
-------
ContractSelectorError
    Base class for everything raised by this package.

SerializationError
    The message payload cannot be turned into JSON.

PathExpressionError
    A matcher path or a generated expression cannot be parsed.

ContractDefinitionError
    A contract is malformed (bad matcher, non-JSON template value, …).

MessageKeyError
    A message offers no cache key (no ``id`` attribute).
"""

from __future__ import annotations


class ContractSelectorError(Exception):
    """Base class for all errors raised by ``contract_selector``."""


class SerializationError(ContractSelectorError, ValueError):
    """Payload could not be serialized to (or parsed as) JSON."""


class PathExpressionError(ContractSelectorError, ValueError):
    """Malformed JSON path or uncompilable JMESPath expression."""


class ContractDefinitionError(ContractSelectorError, ValueError):
    """Contract cannot be turned into path expressions."""


class MessageKeyError(ContractSelectorError, TypeError):
    """Message cannot be keyed for the match cache."""

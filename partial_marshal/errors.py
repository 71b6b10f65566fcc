"""Exception hierarchy for partial decode/encode."""

from __future__ import annotations

import json
from typing import Any


class PartialMarshalError(Exception):
    """Base class for every error raised by partial_marshal."""


class MalformedInputError(PartialMarshalError, json.JSONDecodeError):
    """Payload is not syntactically valid JSON.

    Carries the same ``msg``, ``doc``, ``pos``, ``lineno`` and ``colno`` as the
    underlying :class:`json.JSONDecodeError`.
    """

    @classmethod
    def from_decode_error(cls, error: json.JSONDecodeError) -> MalformedInputError:
        return cls(error.msg, error.doc, error.pos)


class InvalidTargetError(PartialMarshalError, TypeError):
    """Destination is absent, immutable, or not record/sequence-of-record shaped."""


class FieldDecodeError(PartialMarshalError, ValueError):
    """A matched key could not be decoded into its attribute."""

    def __init__(self, key: str, attribute: str, record_type: type[Any], reason: str) -> None:
        self.key = key
        self.attribute = attribute
        self.record_type = record_type
        self.reason = reason
        super().__init__(f"cannot decode key {key!r} into {record_type.__name__}.{attribute}: {reason}")

    def nested_under(self, parent_key: str) -> FieldDecodeError:
        """Return a copy whose key path is prefixed with ``parent_key``."""
        sep = "" if self.key.startswith("[") else "."
        error = FieldDecodeError(f"{parent_key}{sep}{self.key}", self.attribute, self.record_type, self.reason)
        error.__cause__ = self.__cause__
        return error


class MissingCarrierError(PartialMarshalError, TypeError):
    """Strict mode requires an ``Extra`` attribute the record does not declare."""

    def __init__(self, record_type: type[Any]) -> None:
        self.record_type = record_type
        super().__init__(f"{record_type.__name__} declares no Extra attribute")


class MaxDepthExceededError(PartialMarshalError, RecursionError):
    """Record nesting went deeper than the configured maximum."""

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        super().__init__(f"maximum nesting depth of {max_depth} exceeded")

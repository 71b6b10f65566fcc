"""Flatten dataclasses back into generic trees, merging ``Extra`` keys."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from partial_marshal.codec.raw import write
from partial_marshal.errors import MaxDepthExceededError, MissingCarrierError
from partial_marshal.key_mapping.shape import describe, is_record
from partial_marshal.mappings.extra import RawMessage


if TYPE_CHECKING:
    from partial_marshal.config import MarshalOptions


logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    if is_record(value):
        return False
    if value is None or value is False:
        return True
    if isinstance(value, int | float | str | bytes) or hasattr(value, "__len__"):
        return not value
    return False


class Flattener:
    """Invert the reconciler: declared attributes plus carrier entries."""

    def __init__(self, options: MarshalOptions) -> None:
        super().__init__()
        self._options = options

    def flatten(self, value: Any, depth: int = 0) -> Any:
        """Return a generic tree for ``value``.

        Records become dicts keyed by output names with their carrier merged
        on top, containers are walked, raw fragments and scalars pass through.
        """
        if isinstance(value, RawMessage):
            return value
        if is_record(value):
            return self._flatten_record(value, depth)
        if isinstance(value, Mapping):
            self._check_depth(depth)
            return {key: self.flatten(item, depth + 1) for key, item in value.items()}
        if isinstance(value, list | tuple):
            self._check_depth(depth)
            return [self.flatten(item, depth + 1) for item in value]
        return value

    def dumps(self, value: Any) -> str:
        """Flatten and serialize ``value`` to compact JSON text."""
        return write(self.flatten(value), self._options.json_encoder)

    def _check_depth(self, depth: int) -> None:
        if depth > self._options.max_depth:
            raise MaxDepthExceededError(self._options.max_depth)

    def _flatten_record(self, record: Any, depth: int) -> dict[str, Any]:
        self._check_depth(depth)
        shape = describe(type(record))
        if self._options.strict and not shape.has_carrier:
            raise MissingCarrierError(shape.record_type)

        output: dict[str, Any] = {}
        for attribute in shape.attributes:
            item = getattr(record, attribute.name)
            if attribute.omitempty and _is_empty(item):
                continue
            output[attribute.output_name] = self.flatten(item, depth + 1)

        if shape.carrier is None:
            return output

        extra = getattr(record, shape.carrier.name)
        if not extra:
            return output
        overridden = [key for key in extra if key in output]
        if overridden:
            logger.debug("Extra of %s overrides declared key(s) %s", shape.name, overridden)
        for key, item in extra.items():
            output[key] = self.flatten(item, depth + 1)
        return output

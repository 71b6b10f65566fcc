"""Decode JSON objects into dataclasses, keeping unmatched keys in ``Extra``."""

from __future__ import annotations

import dataclasses
import json
import logging
import re
import typing
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from typing import TYPE_CHECKING, Any

from partial_marshal.codec.raw import peek_kind, split_array, split_object
from partial_marshal.errors import (
    FieldDecodeError,
    MalformedInputError,
    MaxDepthExceededError,
    MissingCarrierError,
    PartialMarshalError,
)
from partial_marshal.key_mapping.shape import describe, is_record_type, sequence_item, unwrap_optional
from partial_marshal.mappings.extra import Extra, RawMessage


if TYPE_CHECKING:
    from partial_marshal.config import MarshalOptions
    from partial_marshal.key_mapping.shape import Attribute, RecordShape


logger = logging.getLogger(__name__)

_SCALARS: dict[Any, tuple[type[Any], ...]] = {
    str: (str,),
    int: (int,),
    float: (int, float),
    bool: (bool,),
    type(None): (type(None),),
}
_MAPPING_ORIGINS = (dict, Mapping, MutableMapping)
_ARRAY_ORIGINS = (list, tuple, Sequence, MutableSequence)
_INT_KEY = re.compile(r"-?(?:0|[1-9][0-9]*)")


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or repr(annotation)


def _involves_record(annotation: Any) -> bool:
    inner, _ = unwrap_optional(annotation)
    if is_record_type(inner):
        return True
    item = sequence_item(inner)
    if item is not None:
        return _involves_record(item)
    if typing.get_origin(inner) in _MAPPING_ORIGINS:
        args = typing.get_args(inner)
        return len(args) == 2 and _involves_record(args[1])  # noqa: PLR2004
    return False


def _accepts_null(annotation: Any) -> bool:
    if annotation is Any or annotation is object or annotation is type(None):
        return True
    _, optional = unwrap_optional(annotation)
    return optional


def _mapping_key(key: str, key_type: Any) -> Any:
    """Convert a JSON object key to an ``int`` key type; other key types stay text."""
    if key_type is not int:
        return key
    if _INT_KEY.fullmatch(key) is None:
        msg = f"key {key!r}: expected int key"
        raise TypeError(msg)
    return int(key)


def _check_scalar(value: Any, annotation: Any) -> Any:
    """Check a decoded value against a non-record annotation, elements included."""
    if annotation is Any or annotation is object:
        return value
    inner, optional = unwrap_optional(annotation)
    if value is None and optional:
        return None

    expected = _SCALARS.get(inner)
    if expected is not None:
        if isinstance(value, bool) and inner is not bool:
            msg = f"expected {_type_name(inner)}, got JSON boolean"
            raise TypeError(msg)
        if not isinstance(value, expected):
            msg = f"expected {_type_name(inner)}, got JSON {_json_type(value)}"
            raise TypeError(msg)
        return float(value) if inner is float else value

    origin = typing.get_origin(inner) or inner
    if origin in _ARRAY_ORIGINS:
        if not isinstance(value, list):
            msg = f"expected JSON array, got JSON {_json_type(value)}"
            raise TypeError(msg)
        items = _check_elements(value, _element_types(inner, len(value)))
        return tuple(items) if origin is tuple else items
    if origin in _MAPPING_ORIGINS:
        if not isinstance(value, dict):
            msg = f"expected JSON object, got JSON {_json_type(value)}"
            raise TypeError(msg)
        args = typing.get_args(inner)
        if len(args) != 2:  # noqa: PLR2004
            return value
        checked: dict[Any, Any] = {}
        for key, item in value.items():
            try:
                checked[_mapping_key(key, args[0])] = _check_scalar(item, args[1])
            except TypeError as error:
                msg = f"value {key!r}: {error}"
                raise TypeError(msg) from error
        return checked
    return value


def _element_types(annotation: Any, length: int) -> list[Any]:
    item = sequence_item(annotation)
    if item is not None:
        return [item] * length
    args = typing.get_args(annotation)
    if typing.get_origin(annotation) is tuple and args:
        if len(args) != length:
            msg = f"expected JSON array of {len(args)} elements, got {length}"
            raise TypeError(msg)
        return list(args)
    return [Any] * length


def _check_elements(values: list[Any], annotations: list[Any]) -> list[Any]:
    items: list[Any] = []
    for index, (element, annotation) in enumerate(zip(values, annotations, strict=True)):
        try:
            items.append(_check_scalar(element, annotation))
        except TypeError as error:
            msg = f"element {index}: {error}"
            raise TypeError(msg) from error
    return items


class Reconciler:
    """Partition JSON object keys into declared attributes and the carrier."""

    def __init__(self, options: MarshalOptions) -> None:
        super().__init__()
        self._options = options

    def _check_depth(self, depth: int) -> None:
        if depth > self._options.max_depth:
            raise MaxDepthExceededError(self._options.max_depth)

    def split(self, text: str) -> dict[str, RawMessage]:
        """Return object members as raw fragments, or raise MalformedInputError."""
        try:
            return split_object(text)
        except json.JSONDecodeError as error:
            raise MalformedInputError.from_decode_error(error) from error
        except RecursionError as error:
            raise MaxDepthExceededError(self._options.max_depth) from error

    def split_elements(self, text: str) -> list[RawMessage]:
        """Return array elements as raw fragments, or raise MalformedInputError."""
        try:
            return split_array(text)
        except json.JSONDecodeError as error:
            raise MalformedInputError.from_decode_error(error) from error
        except RecursionError as error:
            raise MaxDepthExceededError(self._options.max_depth) from error

    def decode_value(self, text: str) -> Any:
        """Decode one JSON value with the configured decoder.

        Values nested deeper than the decoder itself can recurse raise
        :class:`MaxDepthExceededError` like any other overly deep input.
        """
        try:
            return self._options.json_decoder(text)
        except json.JSONDecodeError as error:
            raise MalformedInputError.from_decode_error(error) from error
        except RecursionError as error:
            raise MaxDepthExceededError(self._options.max_depth) from error

    def reconcile(self, text: str, record_type: type[Any], depth: int = 0, *, construct: bool = True) -> dict[str, Any]:
        """Return attribute name to value for one JSON object.

        The carrier attribute, when declared, is always present in the result
        holding every member no other attribute consumed.
        """
        self._check_depth(depth)
        shape = describe(record_type)
        members = self.split(text)
        if self._options.strict and not shape.has_carrier:
            raise MissingCarrierError(record_type)
        return self._consume(members, shape, depth, construct=construct)

    def build(self, text: str, record_type: type[Any], depth: int = 0) -> Any:
        """Decode one JSON object into a new ``record_type`` instance."""
        values = self.reconcile(text, record_type, depth)
        return instantiate(record_type, values)

    def _consume(
        self, members: dict[str, RawMessage], shape: RecordShape, depth: int, *, construct: bool
    ) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for attribute in shape.attributes:
            key = attribute.find_key(members, case_insensitive=self._options.case_insensitive)
            if key is None:
                if construct and attribute.required:
                    raise FieldDecodeError(attribute.output_name, attribute.name, shape.record_type, "missing value")
                continue

            raw = members.pop(key)
            if raw.text == "null" and not _accepts_null(attribute.annotation):
                # null into an attribute that cannot hold None leaves it unset
                logger.debug("ignoring null for %s.%s", shape.name, attribute.name)
                if construct and attribute.required:
                    raise FieldDecodeError(key, attribute.name, shape.record_type, "missing value, got JSON null")
                continue
            try:
                values[attribute.name] = self._decode(raw, attribute.annotation, depth + 1)
            except FieldDecodeError as error:
                raise error.nested_under(key) from error.__cause__
            except PartialMarshalError:
                raise
            except (TypeError, ValueError) as error:
                raise FieldDecodeError(key, attribute.name, shape.record_type, str(error)) from error

        if shape.carrier is not None:
            values[shape.carrier.name] = self._carry(members, shape, shape.carrier)
        elif members:
            logger.debug("discarding %d unmatched key(s) for %s: %s", len(members), shape.name, sorted(members))
        return values

    def _carry(self, members: dict[str, RawMessage], shape: RecordShape, carrier: Attribute) -> Extra:
        if self._options.raw_extra:
            extra = Extra(members)
        else:
            extra = Extra()
            for key, raw in members.items():
                try:
                    extra[key] = self.decode_value(raw.text)
                except PartialMarshalError:
                    raise
                except ValueError as error:
                    raise FieldDecodeError(key, carrier.name, shape.record_type, str(error)) from error
        logger.debug("carrying %d unmatched key(s) in %s.%s", len(extra), shape.name, carrier.name)
        return extra

    def _decode(self, raw: RawMessage, annotation: Any, depth: int) -> Any:
        inner, optional = unwrap_optional(annotation)
        if optional and raw.text == "null":
            return None

        if is_record_type(inner):
            kind = peek_kind(raw.text)
            if kind != "object":
                msg = f"expected JSON object for {inner.__name__}, got {raw.text[:1]!r}"
                raise TypeError(msg)
            return self.build(raw.text, inner, depth)

        if _involves_record(inner):
            origin = typing.get_origin(inner)
            if origin in _MAPPING_ORIGINS:
                key_type, item = typing.get_args(inner)
                return self._decode_mapping(raw, key_type, item, depth)
            return self._decode_array(raw, sequence_item(inner), depth, as_tuple=origin is tuple)

        return _check_scalar(self.decode_value(raw.text), annotation)

    def _decode_array(self, raw: RawMessage, item: Any, depth: int, *, as_tuple: bool) -> Any:
        self._check_depth(depth)
        if peek_kind(raw.text) != "array":
            msg = f"expected JSON array, got {raw.text[:1]!r}"
            raise TypeError(msg)
        items: list[Any] = []
        for index, element in enumerate(self.split_elements(raw.text)):
            try:
                items.append(self._decode(element, item, depth + 1))
            except FieldDecodeError as error:
                raise error.nested_under(f"[{index}]") from error.__cause__
            except PartialMarshalError:
                raise
            except (TypeError, ValueError) as error:
                msg = f"element {index}: {error}"
                raise TypeError(msg) from error
        return tuple(items) if as_tuple else items

    def _decode_mapping(self, raw: RawMessage, key_type: Any, item: Any, depth: int) -> dict[Any, Any]:
        self._check_depth(depth)
        if peek_kind(raw.text) != "object":
            msg = f"expected JSON object, got {raw.text[:1]!r}"
            raise TypeError(msg)
        decoded: dict[Any, Any] = {}
        for key, element in self.split(raw.text).items():
            try:
                decoded[_mapping_key(key, key_type)] = self._decode(element, item, depth + 1)
            except FieldDecodeError as error:
                raise error.nested_under(f"[{key!r}]") from error.__cause__
            except PartialMarshalError:
                raise
            except (TypeError, ValueError) as error:
                msg = f"value {key!r}: {error}"
                raise TypeError(msg) from error
        return decoded


def instantiate(record_type: type[Any], values: dict[str, Any]) -> Any:
    """Create a record from attribute values, honouring ``init=False`` fields."""
    init_names = {field.name for field in dataclasses.fields(record_type) if field.init}
    instance = record_type(**{name: value for name, value in values.items() if name in init_names})
    for name, value in values.items():
        if name not in init_names:
            object.__setattr__(instance, name, value)
    return instance


def assign(record: Any, values: dict[str, Any]) -> None:
    """Write decoded attribute values onto an existing record."""
    for name, value in values.items():
        setattr(record, name, value)


"""Record shapes derived from dataclass introspection."""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import MutableSequence, Sequence
from enum import Enum
from functools import cache
from typing import TYPE_CHECKING, Any, Union

from partial_marshal.errors import InvalidTargetError
from partial_marshal.mappings.extra import Extra

from .tags import field_tag, output_name, resolve_external_names


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


_SEQUENCE_ORIGINS = (list, tuple, Sequence, MutableSequence)


class AttributeKind(Enum):
    """How an attribute's value relates to other records."""

    SCALAR = "scalar"
    RECORD = "record"
    SEQUENCE = "sequence"


def is_record_type(annotation: Any) -> bool:
    """Return True for dataclass classes (not instances)."""
    return isinstance(annotation, type) and dataclasses.is_dataclass(annotation)


def is_record(value: Any) -> bool:
    """Return True for dataclass instances."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip ``None`` from ``X | None``; return the rest and whether it was optional."""
    origin = typing.get_origin(annotation)
    if origin is not Union and origin is not types.UnionType:
        return annotation, False
    args = typing.get_args(annotation)
    remaining = tuple(arg for arg in args if arg is not type(None))
    if len(remaining) == len(args):
        return annotation, False
    if len(remaining) == 1:
        return remaining[0], True
    return Union[remaining], True  # noqa: UP007


def sequence_item(annotation: Any) -> Any | None:
    """Return the element annotation of a homogeneous sequence annotation."""
    origin = typing.get_origin(annotation)
    if origin not in _SEQUENCE_ORIGINS:
        return None
    args = typing.get_args(annotation)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
            return args[0]
        return None
    return args[0] if args else Any


def _kind(annotation: Any) -> tuple[AttributeKind, type[Any] | None]:
    inner, _ = unwrap_optional(annotation)
    if is_record_type(inner):
        return AttributeKind.RECORD, inner
    item = sequence_item(inner)
    if item is not None:
        item, _ = unwrap_optional(item)
        if is_record_type(item):
            return AttributeKind.SEQUENCE, item
    return AttributeKind.SCALAR, None


@dataclasses.dataclass(frozen=True)
class Attribute:
    """One declared attribute of a record and the keys it answers to."""

    name: str
    annotation: Any
    kind: AttributeKind
    external_names: tuple[str, ...]
    output_name: str
    item_type: type[Any] | None = None
    omitempty: bool = False
    is_carrier: bool = False
    init: bool = True
    required: bool = False

    def matches(self, key: str, *, case_insensitive: bool = False) -> bool:
        """Return True when ``key`` names this attribute."""
        if key in self.external_names:
            return True
        return case_insensitive and key.casefold() == self.name.casefold()

    def find_key(self, members: Mapping[str, Any], *, case_insensitive: bool = False) -> str | None:
        """Return the first member key this attribute consumes, or None.

        Aliases are tried before the bare name. With ``case_insensitive`` the
        bare name also matches any key equal to it after casefolding.
        """
        for candidate in self.external_names:
            if candidate in members:
                return candidate
        if case_insensitive:
            folded = self.name.casefold()
            for key in members:
                if key.casefold() == folded:
                    return key
        return None


@dataclasses.dataclass(frozen=True)
class RecordShape:
    """Ordered attributes of a record type plus its optional carrier."""

    record_type: type[Any]
    attributes: tuple[Attribute, ...]
    carrier: Attribute | None = None

    @property
    def has_carrier(self) -> bool:
        return self.carrier is not None

    @property
    def name(self) -> str:
        return self.record_type.__name__


def _type_hints(record_type: type[Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except NameError as error:
        msg = f"cannot resolve annotations of {record_type.__name__}: {error}"
        raise InvalidTargetError(msg) from error


@cache
def describe(record_type: type[Any]) -> RecordShape:
    """Build the shape of a dataclass type.

    The attribute whose declared type is exactly :class:`Extra` becomes the
    carrier; fields tagged ``"-"`` are left out entirely.

    Raises
    ------
    InvalidTargetError
        When ``record_type`` is not a dataclass, its annotations cannot be
        resolved, or it declares more than one ``Extra`` attribute.
    """
    if not is_record_type(record_type):
        msg = f"{record_type!r} is not a dataclass type"
        raise InvalidTargetError(msg)

    hints = _type_hints(record_type)
    attributes: list[Attribute] = []
    carrier: Attribute | None = None
    for field in dataclasses.fields(record_type):
        annotation = hints.get(field.name, field.type)
        required = field.init and field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING
        if annotation is Extra:
            if carrier is not None:
                msg = f"{record_type.__name__} declares more than one Extra attribute: {carrier.name}, {field.name}"
                raise InvalidTargetError(msg)
            carrier = Attribute(
                name=field.name,
                annotation=annotation,
                kind=AttributeKind.SCALAR,
                external_names=(),
                output_name=field.name,
                is_carrier=True,
                init=field.init,
                required=required,
            )
            continue

        tag = field_tag(field)
        if tag.skip:
            continue
        kind, item_type = _kind(annotation)
        attributes.append(
            Attribute(
                name=field.name,
                annotation=annotation,
                kind=kind,
                external_names=resolve_external_names(field),
                output_name=output_name(field),
                item_type=item_type,
                omitempty=tag.omitempty,
                init=field.init,
                required=required,
            )
        )
    return RecordShape(record_type=record_type, attributes=tuple(attributes), carrier=carrier)


def has_matching_attribute(shape: RecordShape, key: str, *, case_insensitive: bool = False) -> bool:
    """Return True if any declared attribute of ``shape`` answers to ``key``."""
    return any(attribute.matches(key, case_insensitive=case_insensitive) for attribute in shape.attributes)


def unmatched_keys(shape: RecordShape, keys: Iterable[str], *, case_insensitive: bool = False) -> list[str]:
    """Return the keys no attribute of ``shape`` answers to, in input order."""
    return [key for key in keys if not has_matching_attribute(shape, key, case_insensitive=case_insensitive)]

"""Attribute-name to external-key aliasing via dataclass field metadata."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, NamedTuple


if TYPE_CHECKING:
    from collections.abc import Mapping


TAG_KEY = "json"
OMITEMPTY = "omitempty"
SKIP = "-"

_RESERVED = frozenset({OMITEMPTY, SKIP})


class FieldTag(NamedTuple):
    """Parsed form of a ``"name,alias,omitempty"`` tag."""

    names: tuple[str, ...]
    omitempty: bool
    skip: bool


def parse_tag(tag: str) -> FieldTag:
    """Split a tag into external names and options.

    Empty segments are ignored and option words are never names. A tag of
    exactly ``"-"`` marks the attribute as invisible to JSON.
    """
    if tag.strip() == SKIP:
        return FieldTag(names=(), omitempty=False, skip=True)

    names: list[str] = []
    omitempty = False
    for segment in tag.split(","):
        segment = segment.strip()
        if not segment:
            continue
        if segment == OMITEMPTY:
            omitempty = True
            continue
        if segment not in names:
            names.append(segment)
    return FieldTag(names=tuple(names), omitempty=omitempty, skip=False)


def field_tag(field: dataclasses.Field[Any]) -> FieldTag:
    """Return the parsed tag of a dataclass field, empty when it has none."""
    tag = field.metadata.get(TAG_KEY, "")
    if not isinstance(tag, str):
        msg = f"{TAG_KEY!r} metadata of field {field.name!r} must be a str"
        raise TypeError(msg)
    return parse_tag(tag)


def resolve_external_names(field: dataclasses.Field[Any]) -> tuple[str, ...]:
    """Return candidate input keys for a field, highest priority first.

    Tag-declared aliases come first in declared order, followed by the bare
    attribute name. Skipped fields have no candidates.
    """
    tag = field_tag(field)
    if tag.skip:
        return ()
    if field.name in tag.names:
        return tag.names
    return (*tag.names, field.name)


def output_name(field: dataclasses.Field[Any]) -> str:
    """Return the key a field is written under: first alias, else bare name."""
    tag = field_tag(field)
    return tag.names[0] if tag.names else field.name


def json_field(
    *names: str,
    omitempty: bool = False,
    skip: bool = False,
    metadata: Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> Any:
    """Build a :func:`dataclasses.field` carrying an external-name tag.

    Parameters
    ----------
    names
        External keys; the first is the output key, all are accepted on input.
    omitempty
        Leave the attribute out of encoded output when its value is empty.
    skip
        Never match or emit the attribute.
    metadata
        Extra field metadata merged with the tag.
    kwargs
        Passed through to :func:`dataclasses.field` (``default``, ...).
    """
    for name in names:
        if not name:
            msg = "external names must not be empty"
            raise ValueError(msg)
        if "," in name:
            msg = "external names must not contain ','"
            raise ValueError(msg)
        if name in _RESERVED:
            msg = f"{name!r} is reserved and cannot be used as an external name"
            raise ValueError(msg)
    if skip and (names or omitempty):
        msg = "skip cannot be combined with names or omitempty"
        raise ValueError(msg)

    tag = SKIP if skip else ",".join((*names, OMITEMPTY) if omitempty else names)
    return dataclasses.field(metadata={**(metadata or {}), TAG_KEY: tag}, **kwargs)

"""Attribute aliasing and record shape introspection."""

from .shape import AttributeKind, RecordShape, describe, has_matching_attribute, unmatched_keys
from .tags import json_field, parse_tag, resolve_external_names


__all__ = [
    "AttributeKind",
    "RecordShape",
    "describe",
    "has_matching_attribute",
    "json_field",
    "parse_tag",
    "resolve_external_names",
    "unmatched_keys",
]

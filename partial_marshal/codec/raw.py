"""Split JSON text into verbatim value fragments and write them back.

The stdlib decoder has no equivalent of a lazily decoded raw value, so
objects and arrays are walked member by member here: keys are read with
:func:`json.decoder.scanstring` and each value's extent is found with
:meth:`json.JSONDecoder.raw_decode`, which also validates it.
"""

from __future__ import annotations

import json
import re
from json.decoder import scanstring
from typing import TYPE_CHECKING, Any, Literal

from partial_marshal.mappings.extra import RawMessage


if TYPE_CHECKING:
    from collections.abc import Callable


_WHITESPACE = re.compile(r"[ \t\n\r]*")
_SCANNER = json.JSONDecoder()

PayloadKind = Literal["object", "array", "scalar"]


def to_text(data: bytes | bytearray | str) -> str:
    """Return payload text, decoding bytes with the encoding JSON detection reports."""
    if isinstance(data, str):
        return data
    if isinstance(data, bytes | bytearray):
        return bytes(data).decode(json.detect_encoding(data), "surrogatepass")
    msg = f"JSON payload must be str, bytes or bytearray, not {type(data).__name__}"
    raise TypeError(msg)


def _skip(text: str, pos: int) -> int:
    match = _WHITESPACE.match(text, pos)
    return match.end() if match else pos


def peek_kind(text: str) -> PayloadKind:
    """Classify a payload by its first non-whitespace character."""
    pos = _skip(text, 0)
    if text.startswith("{", pos):
        return "object"
    if text.startswith("[", pos):
        return "array"
    return "scalar"


def _expect_end(text: str, pos: int) -> None:
    pos = _skip(text, pos)
    if pos != len(text):
        raise json.JSONDecodeError("Extra data", text, pos)


def _value(text: str, pos: int) -> tuple[RawMessage, int]:
    _, end = _SCANNER.raw_decode(text, pos)
    return RawMessage(text[pos:end]), end


def split_object(text: str) -> dict[str, RawMessage]:
    """Return the members of a JSON object with each value left undecoded.

    Raises
    ------
    json.JSONDecodeError
        When ``text`` is not exactly one well-formed JSON object.
    """
    pos = _skip(text, 0)
    if not text.startswith("{", pos):
        raise json.JSONDecodeError("Expecting '{'", text, pos)
    members: dict[str, RawMessage] = {}
    pos = _skip(text, pos + 1)
    if text.startswith("}", pos):
        _expect_end(text, pos + 1)
        return members

    while True:
        if not text.startswith('"', pos):
            raise json.JSONDecodeError("Expecting property name enclosed in double quotes", text, pos)
        key, pos = scanstring(text, pos + 1)
        pos = _skip(text, pos)
        if not text.startswith(":", pos):
            raise json.JSONDecodeError("Expecting ':' delimiter", text, pos)
        pos = _skip(text, pos + 1)
        members[key], pos = _value(text, pos)
        pos = _skip(text, pos)
        if text.startswith("}", pos):
            break
        if not text.startswith(",", pos):
            raise json.JSONDecodeError("Expecting ',' delimiter", text, pos)
        pos = _skip(text, pos + 1)

    _expect_end(text, pos + 1)
    return members


def split_array(text: str) -> list[RawMessage]:
    """Return the elements of a JSON array with each element left undecoded."""
    pos = _skip(text, 0)
    if not text.startswith("[", pos):
        raise json.JSONDecodeError("Expecting '['", text, pos)
    items: list[RawMessage] = []
    pos = _skip(text, pos + 1)
    if text.startswith("]", pos):
        _expect_end(text, pos + 1)
        return items

    while True:
        item, pos = _value(text, pos)
        items.append(item)
        pos = _skip(text, pos)
        if text.startswith("]", pos):
            break
        if not text.startswith(",", pos):
            raise json.JSONDecodeError("Expecting ',' delimiter", text, pos)
        pos = _skip(text, pos + 1)

    _expect_end(text, pos + 1)
    return items


def _key_text(key: Any) -> str:
    """Return the object key ``json.dumps`` would write for ``key``."""
    if isinstance(key, str):
        return key
    if key is True:
        return "true"
    if key is False:
        return "false"
    if key is None:
        return "null"
    if isinstance(key, int):
        return int.__repr__(key)
    if isinstance(key, float):
        return json.dumps(key)
    msg = f"keys must be str, int, float, bool or None, not {type(key).__name__}"
    raise TypeError(msg)


def write(tree: Any, json_encoder: Callable[[Any], str] = json.dumps) -> str:
    """Serialize a generic tree compactly, emitting raw fragments verbatim."""
    if isinstance(tree, RawMessage):
        return tree.text
    if isinstance(tree, dict):
        parts: list[str] = []
        for key, value in tree.items():
            parts.append(f"{json_encoder(_key_text(key))}:{write(value, json_encoder)}")
        return "{" + ",".join(parts) + "}"
    if isinstance(tree, list | tuple):
        return "[" + ",".join(write(item, json_encoder) for item in tree) + "]"
    return json_encoder(tree)

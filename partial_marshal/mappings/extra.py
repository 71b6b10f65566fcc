"""Carrier type holding the keys a record did not declare."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, override


class RawMessage:
    """Verbatim JSON text of a single value, decoded only on demand."""

    __slots__ = ("text",)

    text: str

    def __init__(self, text: str) -> None:
        if not isinstance(text, str):
            msg = f"RawMessage text must be str, not {type(text).__name__}"
            raise TypeError(msg)
        object.__setattr__(self, "text", text)

    @override
    def __setattr__(self, name: str, value: Any) -> None:
        msg = "RawMessage is immutable"
        raise AttributeError(msg)

    def decode(self, json_decoder: Callable[[str], Any] = json.loads) -> Any:
        """Return the generic value this fragment encodes."""
        return json_decoder(self.text)

    @classmethod
    def encode(cls, value: Any, json_encoder: Callable[[Any], str] = json.dumps) -> RawMessage:
        """Build a fragment from a generic value."""
        return cls(json_encoder(value))

    @override
    def __eq__(self, other: object) -> bool:
        if isinstance(other, RawMessage):
            return self.text == other.text
        return NotImplemented

    @override
    def __hash__(self) -> int:
        return hash((RawMessage, self.text))

    @override
    def __repr__(self) -> str:
        return f"RawMessage({self.text!r})"

    @override
    def __str__(self) -> str:
        return self.text


class Extra(dict[str, Any]):
    """Unmatched top-level keys of a decoded JSON object.

    Declare an attribute of exactly this type on a dataclass to have the
    reconciler collect every key that no other attribute consumed. Values are
    :class:`RawMessage` fragments after a raw-mode decode, but any
    JSON-compatible value may be stored; the encoder writes both kinds back as
    top-level keys.
    """

    def decoded(self, json_decoder: Callable[[str], Any] = json.loads) -> dict[str, Any]:
        """Return a plain dict with every raw fragment decoded."""
        return {
            key: value.decode(json_decoder) if isinstance(value, RawMessage) else value for key, value in self.items()
        }

    def raw(self, json_encoder: Callable[[Any], str] = json.dumps) -> dict[str, RawMessage]:
        """Return a plain dict with every value as a raw fragment."""
        return {
            key: value if isinstance(value, RawMessage) else RawMessage.encode(value, json_encoder)
            for key, value in self.items()
        }

    @override
    def __repr__(self) -> str:
        return f"Extra({dict.__repr__(self)})"

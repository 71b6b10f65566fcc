"""Options shared by the reconciler and the flattener."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Callable
from typing import Any


DEFAULT_MAX_DEPTH = 128


@dataclasses.dataclass(frozen=True, kw_only=True)
class MarshalOptions:
    """Policy knobs for one marshaler.

    Parameters
    ----------
    strict
        Require every record to declare an ``Extra`` attribute; records without
        one raise :class:`~partial_marshal.errors.MissingCarrierError` instead of
        silently dropping (decode) or skipping the merge (encode).
    case_insensitive
        Also match a bare attribute name against input keys after casefolding.
        Aliases always match exactly.
    raw_extra
        Store unmatched values as verbatim :class:`RawMessage` fragments
        (lossless) rather than decoded generic values.
    max_depth
        Maximum record/container nesting walked before giving up.
    json_encoder
        Serializes scalar leaves and keys.
    json_decoder
        Decodes matched values and, when ``raw_extra`` is off, unmatched ones.
    """

    strict: bool = False
    case_insensitive: bool = False
    raw_extra: bool = True
    max_depth: int = DEFAULT_MAX_DEPTH
    json_encoder: Callable[[Any], str] = json.dumps
    json_decoder: Callable[[str], Any] = json.loads

    def __post_init__(self) -> None:
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            msg = "max_depth must be an int"
            raise TypeError(msg)
        if self.max_depth < 1:
            msg = "max_depth must be at least 1"
            raise ValueError(msg)
        if not callable(self.json_encoder):
            msg = "json_encoder must be callable"
            raise TypeError(msg)
        if not callable(self.json_decoder):
            msg = "json_decoder must be callable"
            raise TypeError(msg)

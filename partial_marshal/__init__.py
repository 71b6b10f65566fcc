"""partial-marshal - JSON to dataclass decoding that keeps undeclared keys"""

from ._version import version as __version__
from .config import DEFAULT_MAX_DEPTH, MarshalOptions
from .errors import (
    FieldDecodeError,
    InvalidTargetError,
    MalformedInputError,
    MaxDepthExceededError,
    MissingCarrierError,
    PartialMarshalError,
)
from .key_mapping import json_field
from .mappings import Extra, RawMessage
from .marshaler import PartialMarshaler, dumps, extract_extra, flatten, loads, marshal, unmarshal


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "Extra",
    "FieldDecodeError",
    "InvalidTargetError",
    "MalformedInputError",
    "MarshalOptions",
    "MaxDepthExceededError",
    "MissingCarrierError",
    "PartialMarshalError",
    "PartialMarshaler",
    "RawMessage",
    "__version__",
    "dumps",
    "extract_extra",
    "flatten",
    "json_field",
    "loads",
    "marshal",
    "unmarshal",
]

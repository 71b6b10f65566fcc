"""Entry points for partial decode and encode."""

from __future__ import annotations

import dataclasses
import json
import typing
from collections.abc import Callable, MutableSequence
from typing import Any, override

from partial_marshal.codec.raw import PayloadKind, peek_kind, to_text
from partial_marshal.config import DEFAULT_MAX_DEPTH, MarshalOptions
from partial_marshal.errors import FieldDecodeError, InvalidTargetError
from partial_marshal.flatten import Flattener
from partial_marshal.key_mapping.shape import describe, is_record, is_record_type, sequence_item, unmatched_keys
from partial_marshal.mappings.extra import Extra
from partial_marshal.reconcile import Reconciler, assign, instantiate


Payload = bytes | bytearray | str


def _is_frozen(record: Any) -> bool:
    params = getattr(type(record), "__dataclass_params__", None)
    return bool(params and params.frozen)


class PartialMarshaler:
    """Decode JSON into dataclasses without losing undeclared keys, and back.

    Any dataclass attribute declared with type :class:`Extra` receives the
    members of its JSON object that no other attribute consumed; encoding
    writes them back as top-level keys of the same object.
    """

    def __init__(
        self,
        *,
        strict: bool = False,
        case_insensitive: bool = False,
        raw_extra: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
        json_encoder: Callable[[Any], str] = json.dumps,
        json_decoder: Callable[[str], Any] = json.loads,
    ) -> None:
        super().__init__()
        self.options = MarshalOptions(
            strict=strict,
            case_insensitive=case_insensitive,
            raw_extra=raw_extra,
            max_depth=max_depth,
            json_encoder=json_encoder,
            json_decoder=json_decoder,
        )
        self._reconciler = Reconciler(self.options)
        self._flattener = Flattener(self.options)

    def _payload(self, data: Payload) -> tuple[str, PayloadKind]:
        """Return payload text and kind; scalar payloads are validated here."""
        text = to_text(data)
        kind = peek_kind(text)
        if kind == "scalar":
            _ = self._reconciler.decode_value(text)
        return text, kind

    def unmarshal(self, data: Payload, destination: Any, *, item_type: type[Any] | None = None) -> Any:
        """Decode ``data`` into ``destination`` in place and return it.

        Parameters
        ----------
        data
            JSON payload as bytes or text.
        destination
            A mutable dataclass instance for an object payload, or a list for
            an array payload (decoded elements are appended).
        item_type
            Element dataclass type; required when ``destination`` is a list.

        Raises
        ------
        InvalidTargetError
            Destination is not a mutable record or list of records, or does
            not fit the payload. Raised before any attribute is written.
        MalformedInputError
            ``data`` is not valid JSON.
        FieldDecodeError
            A matched value does not fit its attribute.
        MaxDepthExceededError
            Records, containers or any single value nest deeper than allowed.
        """
        if isinstance(destination, MutableSequence):
            return self._unmarshal_list(data, destination, item_type)

        if not is_record(destination):
            msg = f"cannot unmarshal into {type(destination).__name__}: destination must be a dataclass instance"
            raise InvalidTargetError(msg)
        if _is_frozen(destination):
            msg = f"cannot unmarshal into frozen dataclass {type(destination).__name__}"
            raise InvalidTargetError(msg)
        record_type = type(destination)
        _ = describe(record_type)

        text, kind = self._payload(data)
        if kind != "object":
            msg = f"cannot decode a JSON {kind} into {record_type.__name__}"
            raise InvalidTargetError(msg)
        values = self._reconciler.reconcile(text, record_type, construct=False)
        assign(destination, values)
        return destination

    def _unmarshal_list(self, data: Payload, destination: MutableSequence[Any], item_type: type[Any] | None) -> Any:
        if item_type is None or not is_record_type(item_type):
            msg = f"decoding into a list requires a dataclass item_type, got {item_type!r}"
            raise InvalidTargetError(msg)
        _ = describe(item_type)

        text, kind = self._payload(data)
        if kind != "array":
            msg = f"cannot decode a JSON {kind} into a list of {item_type.__name__}"
            raise InvalidTargetError(msg)
        elements = self._reconciler.split_elements(text)
        for index, element in enumerate(elements):
            if peek_kind(element.text) != "object":
                msg = f"array element {index} cannot be decoded into {item_type.__name__}"
                raise InvalidTargetError(msg)

        items: list[Any] = []
        for index, element in enumerate(elements):
            try:
                items.append(self._reconciler.build(element.text, item_type, 1))
            except FieldDecodeError as error:
                raise error.nested_under(f"[{index}]") from error.__cause__
        destination.extend(items)
        return destination

    def loads(self, data: Payload, target_type: Any) -> Any:
        """Decode ``data`` into a new value of ``target_type``.

        ``target_type`` may be a dataclass, a ``list[...]`` or
        ``tuple[..., ...]`` of dataclasses, or any other type, which falls
        back to plain decoding without carry-along.
        """
        if is_record_type(target_type):
            _ = describe(target_type)
            text, kind = self._payload(data)
            if kind != "object":
                msg = f"cannot decode a JSON {kind} into {target_type.__name__}"
                raise InvalidTargetError(msg)
            values = self._reconciler.reconcile(text, target_type)
            return instantiate(target_type, values)

        item = sequence_item(target_type)
        if item is not None and is_record_type(item):
            result = self._unmarshal_list(data, [], item)
            return tuple(result) if typing.get_origin(target_type) is tuple else result

        return self._reconciler.decode_value(to_text(data))

    def flatten(self, value: Any) -> Any:
        """Return the generic tree ``value`` encodes to, raw fragments kept as is."""
        return self._flattener.flatten(value)

    def dumps(self, value: Any) -> str:
        """Encode ``value`` as compact JSON text."""
        return self._flattener.dumps(value)

    def marshal(self, value: Any) -> bytes:
        """Encode ``value`` as UTF-8 JSON bytes."""
        return self.dumps(value).encode("utf-8")

    def extract_extra(self, data: Payload, record_type: type[Any]) -> Extra:
        """Return the top-level keys of ``data`` that ``record_type`` does not declare.

        Unlike :meth:`unmarshal`, nothing is decoded into attributes and nested
        objects are not descended into: each key is only classified against
        the record's attribute names and aliases.
        """
        shape = describe(record_type)
        text, kind = self._payload(data)
        if kind != "object":
            msg = f"cannot extract extra keys of {record_type.__name__} from a JSON {kind}"
            raise InvalidTargetError(msg)
        members = self._reconciler.split(text)
        keys = unmatched_keys(shape, members, case_insensitive=self.options.case_insensitive)
        if self.options.raw_extra:
            return Extra({key: members[key] for key in keys})
        return Extra({key: self._reconciler.decode_value(members[key].text) for key in keys})

    @override
    def __repr__(self) -> str:
        options = ", ".join(
            f"{field.name}={getattr(self.options, field.name)!r}"
            for field in dataclasses.fields(self.options)
            if field.name not in {"json_encoder", "json_decoder"}
        )
        return f"PartialMarshaler({options})"


_default = PartialMarshaler()


def unmarshal(data: Payload, destination: Any, *, item_type: type[Any] | None = None) -> Any:
    """Decode ``data`` into ``destination`` in place with default options."""
    return _default.unmarshal(data, destination, item_type=item_type)


def loads(data: Payload, target_type: Any) -> Any:
    """Decode ``data`` into a new ``target_type`` value with default options."""
    return _default.loads(data, target_type)


def flatten(value: Any) -> Any:
    """Flatten ``value`` into a generic tree with default options."""
    return _default.flatten(value)


def dumps(value: Any) -> str:
    """Encode ``value`` as JSON text with default options."""
    return _default.dumps(value)


def marshal(value: Any) -> bytes:
    """Encode ``value`` as JSON bytes with default options."""
    return _default.marshal(value)


def extract_extra(data: Payload, record_type: type[Any]) -> Extra:
    """Classify the top-level keys of ``data`` against ``record_type`` with default options."""
    return _default.extract_extra(data, record_type)

import json
from dataclasses import dataclass, field

import pytest

from partial_marshal import Extra, RawMessage, dumps, flatten, json_field, loads, marshal


@dataclass
class Flat:
    FieldOne: str = ""
    extra: Extra = field(default_factory=Extra)


@dataclass
class Tagged:
    FieldOne: str = json_field("field_one", default="")
    extra: Extra = field(default_factory=Extra)


@dataclass
class Sub:
    SubOne: str = json_field("sub_one", default="")
    extra: Extra = field(default_factory=Extra)


@dataclass
class Outer:
    FieldOne: str = json_field("field_one", default="")
    Nested: Sub = json_field("field_sub_struct", default_factory=Sub)
    extra: Extra = field(default_factory=Extra)


@dataclass
class NoCarrier:
    field_one: str = json_field("field_one", default="")
    nested: Sub | None = None


@dataclass
class Sparse:
    note: str = json_field("note", omitempty=True, default="")
    count: int = json_field(omitempty=True, default=0)
    items: list[int] = json_field(omitempty=True, default_factory=list)
    child: Sub = json_field("child", omitempty=True, default_factory=Sub)
    secret: str = json_field(skip=True, default="s3cret")
    extra: Extra = field(default_factory=Extra)


@dataclass
class Counted:
    by_id: dict[int, str] = field(default_factory=dict)


@dataclass
class Listing:
    entries: list[Sub] = field(default_factory=list)
    by_key: dict[str, Sub] = field(default_factory=dict)
    extra: Extra = field(default_factory=Extra)


def test_marshal_merges_extra_into_top_level_keys() -> None:
    source = Flat("value one", Extra({"field_two": RawMessage('"value two"')}))

    assert marshal(source) == b'{"FieldOne":"value one","field_two":"value two"}'


def test_marshal_list_of_records() -> None:
    source = [
        Flat("value one", Extra({"field_two": RawMessage('"value two"')})),
        Flat("second value one", Extra({"field_two": RawMessage('"second value two"')})),
    ]

    assert marshal(source) == (
        b'[{"FieldOne":"value one","field_two":"value two"},'
        b'{"FieldOne":"second value one","field_two":"second value two"}]'
    )


def test_marshal_uses_output_names() -> None:
    source = Tagged("value one", Extra({"field_two": RawMessage('"value two"')}))

    assert marshal(source) == b'{"field_one":"value one","field_two":"value two"}'


def test_marshal_nested_records_merge_their_own_extra() -> None:
    source = Outer(
        "value one",
        Sub("sub value one", Extra({"sub_field_two": RawMessage('"sub value two"')})),
        Extra({"field_two": RawMessage('"value two"')}),
    )

    assert dumps(source) == (
        '{"field_one":"value one",'
        '"field_sub_struct":{"sub_one":"sub value one","sub_field_two":"sub value two"},'
        '"field_two":"value two"}'
    )


def test_marshal_plain_extra_values() -> None:
    source = Tagged("v1", Extra({"extra_key": "extra_val", "n": [1, {"a": None}]}))

    assert json.loads(marshal(source)) == {"field_one": "v1", "extra_key": "extra_val", "n": [1, {"a": None}]}


def test_marshal_extra_overrides_declared_key() -> None:
    source = Flat("declared", Extra({"FieldOne": "carried"}))

    assert dumps(source) == '{"FieldOne":"carried"}'


def test_marshal_keeps_raw_fragments_verbatim() -> None:
    source = Flat("v", Extra({"price": RawMessage("1.50"), "doc": RawMessage('{"a": [1, 2]}')}))

    assert dumps(source) == '{"FieldOne":"v","price":1.50,"doc":{"a": [1, 2]}}'


def test_marshal_without_carrier_is_ordinary_encoding() -> None:
    assert dumps(NoCarrier("value one")) == '{"field_one":"value one","nested":null}'
    assert dumps(NoCarrier("v", Sub("s", Extra({"k": 1})))) == '{"field_one":"v","nested":{"sub_one":"s","k":1}}'


def test_marshal_scalars() -> None:
    assert marshal("") == b'""'
    assert marshal(None) == b"null"
    assert marshal(1.5) == b"1.5"
    assert marshal({"a": [1, 2]}) == b'{"a":[1,2]}'


def test_marshal_omitempty_and_skip() -> None:
    assert dumps(Sparse()) == '{"child":{"sub_one":""}}'
    assert json.loads(dumps(Sparse("n", 2, [1]))) == {
        "note": "n",
        "count": 2,
        "items": [1],
        "child": {"sub_one": ""},
    }


def test_marshal_sequences_and_mappings_of_records() -> None:
    source = Listing(
        [Sub("a", Extra({"x": 1})), Sub("b")],
        {"k": Sub("c", Extra({"y": RawMessage("true")}))},
    )

    assert dumps(source) == (
        '{"entries":[{"sub_one":"a","x":1},{"sub_one":"b"}],"by_key":{"k":{"sub_one":"c","y":true}}}'
    )


def test_flatten_returns_generic_tree_with_raw_leaves() -> None:
    source = Outer("v", Sub("s", Extra({"k": RawMessage("1")})), Extra({"top": "t"}))

    assert flatten(source) == {
        "field_one": "v",
        "field_sub_struct": {"sub_one": "s", "k": RawMessage("1")},
        "top": "t",
    }


def test_marshal_writes_int_keys_as_strings() -> None:
    assert marshal(Counted({1: "a", -2: "b"})) == b'{"by_id":{"1":"a","-2":"b"}}'
    assert loads(marshal(Counted({1: "a"})), Counted) == Counted({1: "a"})


def test_marshal_rejects_unsupported_extra_keys() -> None:
    source = Flat("v", Extra({(1, 2): "x"}))  # type: ignore[dict-item]

    with pytest.raises(TypeError, match="keys must be str, int, float, bool or None, not tuple"):
        _ = marshal(source)



def test_marshal_propagates_encoder_failures() -> None:
    with pytest.raises(TypeError, match="not JSON serializable"):
        _ = marshal(Flat("v", Extra({"when": object()})))

import json
from dataclasses import dataclass, field

from hypothesis import given
from hypothesis import strategies as st

from partial_marshal import Extra, RawMessage, json_field, loads, marshal


@dataclass
class Sub:
    SubOne: str = json_field("sub_one", default="")
    extra: Extra = field(default_factory=Extra)


@dataclass
class Outer:
    FieldOne: str = json_field("field_one", default="")
    Nested: Sub = json_field("nested", default_factory=Sub)
    extra: Extra = field(default_factory=Extra)


_OUTER_NAMES = {"field_one", "FieldOne", "nested", "Nested"}
_SUB_NAMES = {"sub_one", "SubOne"}

_JSON_SCALARS = st.none() | st.booleans() | st.integers(min_value=-(2**53), max_value=2**53) | st.text(max_size=20)
_JSON_VALUES = st.recursive(
    _JSON_SCALARS,
    lambda children: st.lists(children, max_size=3) | st.dictionaries(st.text(max_size=8), children, max_size=3),
    max_leaves=10,
)
_OUTER_EXTRA = st.dictionaries(st.text(max_size=12).filter(lambda key: key not in _OUTER_NAMES), _JSON_VALUES, max_size=6)
_SUB_EXTRA = st.dictionaries(st.text(max_size=12).filter(lambda key: key not in _SUB_NAMES), _JSON_VALUES, max_size=6)


def _raw(values: dict[str, object]) -> Extra:
    return Extra({key: RawMessage.encode(value) for key, value in values.items()})


@given(field_one=st.text(max_size=20), extra=_OUTER_EXTRA)
def test_every_input_key_is_consumed_or_carried(field_one: str, extra: dict[str, object]) -> None:
    payload = {"field_one": field_one, **extra}

    record = loads(json.dumps(payload), Outer)

    assert record.FieldOne == field_one
    assert set(record.extra) | {"field_one"} == set(payload)
    assert record.extra.decoded() == extra


@given(
    field_one=st.text(max_size=20),
    sub_one=st.text(max_size=20),
    outer_extra=_OUTER_EXTRA,
    sub_extra=_SUB_EXTRA,
)
def test_loads_of_marshal_is_a_fixed_point(
    field_one: str, sub_one: str, outer_extra: dict[str, object], sub_extra: dict[str, object]
) -> None:
    record = Outer(field_one, Sub(sub_one, _raw(sub_extra)), _raw(outer_extra))

    assert loads(marshal(record), Outer) == record


@given(shared=st.lists(st.text(max_size=8).filter(lambda key: key not in _OUTER_NAMES | _SUB_NAMES), max_size=5))
def test_same_unmatched_key_stays_at_its_own_level(shared: list[str]) -> None:
    payload = {
        "nested": {key: "inner" for key in shared},
        **{key: "outer" for key in shared},
    }

    record = loads(json.dumps(payload), Outer)

    assert record.extra.decoded() == dict.fromkeys(shared, "outer")
    assert record.Nested.extra.decoded() == dict.fromkeys(shared, "inner")

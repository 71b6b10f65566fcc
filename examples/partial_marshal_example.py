"""Minimal example for decoding and re-encoding a payload with unknown keys."""

from dataclasses import dataclass, field

from partial_marshal import Extra, PartialMarshaler, json_field


@dataclass
class Address:
    city: str = ""
    extra: Extra = field(default_factory=Extra)


@dataclass
class User:
    name: str = json_field("user_name", default="")
    address: Address = field(default_factory=Address)
    extra: Extra = field(default_factory=Extra)


def main() -> None:
    """Decode, edit one declared attribute and encode again without losing keys."""
    marshaler = PartialMarshaler()
    payload = b"""{
        "user_name": "alice",
        "address": {"city": "Saskatoon", "postcode": "S7N"},
        "age": 30,
        "score": 1.50
    }"""

    user = marshaler.unmarshal(payload, User())
    print(f"{user=}")
    print("top-level extra:", user.extra.decoded())
    print("address extra:", user.address.extra.decoded())

    user.name = "bob"
    print("re-encoded:", marshaler.dumps(user))
    print("top-level unknown keys:", list(marshaler.extract_extra(payload, User)))


if __name__ == "__main__":
    main()

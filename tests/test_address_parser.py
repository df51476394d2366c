import pytest

from inbound_reply.services.address_parser import (
    AddressFormat,
    AddressParts,
    format_address,
    parse_address,
)

ADDRESS = "bob@example.com"


@pytest.mark.parametrize(
    "raw",
    [
        ADDRESS,
        f"{ADDRESS}\n",
        f"<{ADDRESS}>",
        f"Bob <{ADDRESS}>",
        f"fake@example.com <{ADDRESS}>",
        f"Bob\n <{ADDRESS}>",
    ],
)
def test_parse_address_extracts_token_and_email(raw: str) -> None:
    parts = parse_address(raw)
    assert parts.email == ADDRESS
    assert parts.token == "bob"
    assert parts.host == "example.com"


def test_parse_address_keeps_trimmed_full_value() -> None:
    parts = parse_address("  Bob <bob@example.com>\n")
    assert parts.full == "Bob <bob@example.com>"
    assert parts.as_dict() == {
        "token": "bob",
        "host": "example.com",
        "email": "bob@example.com",
        "full": "Bob <bob@example.com>",
    }


def test_parse_address_display_name() -> None:
    assert parse_address('"Bob Smith" <bob@example.com>').display_name == "Bob Smith"
    assert parse_address("fake@example.com <bob@example.com>").display_name == "fake@example.com"
    assert parse_address("bob@example.com").display_name == ""


def test_parse_address_unclosed_bracket() -> None:
    assert parse_address("Bob <bob@example.com").email == "bob@example.com"


def test_parse_address_splits_on_last_at() -> None:
    parts = parse_address('"weird@local"@example.com')
    assert parts.token == '"weird@local"'
    assert parts.host == "example.com"


def test_parse_address_without_host_degrades_to_token() -> None:
    parts = parse_address("undisclosed-recipients")
    assert parts == AddressParts(
        token="undisclosed-recipients",
        host="",
        email="undisclosed-recipients",
        full="undisclosed-recipients",
    )


def test_parse_address_empty_value() -> None:
    parts = parse_address(None)
    assert parts.token == ""
    assert parts.full == ""


def test_format_address_modes() -> None:
    parts = parse_address("Some Identifier <some-identifier@example.com>")
    assert format_address(parts, AddressFormat.FULL) == "Some Identifier <some-identifier@example.com>"
    assert format_address(parts, "email") == "some-identifier@example.com"
    assert format_address(parts, "token") == "some-identifier"
    assert format_address(parts, "hash") is parts


def test_format_address_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError):
        format_address(parse_address(ADDRESS), "nickname")

"""Tests for international phone validation and normalisation."""
import pytest

from blane_checkout.services.phone import (
    MSG_PHONE_COUNTRY,
    MSG_PHONE_FORMAT,
    MSG_PHONE_REQUIRED,
    country_name_for,
    normalize_phone,
    validate_international_phone,
)


@pytest.mark.parametrize(
    "country_code, number",
    [
        ("212", "0612345678"),
        ("+212", "06 12 34 56 78"),
        ("33", "6.12.34.56.78"),
        ("1", "(415) 555-0134"),
    ],
)
def test_valid_numbers(country_code, number):
    result = validate_international_phone(country_code, number)
    assert result.is_valid
    assert result.error_message is None
    assert result.formatted.startswith("+")


@pytest.mark.parametrize(
    "country_code, number, message",
    [
        ("212", "", MSG_PHONE_REQUIRED),
        ("212", "   ", MSG_PHONE_REQUIRED),
        ("212", "1234", MSG_PHONE_FORMAT),
        ("212", "1234567890123456", MSG_PHONE_FORMAT),
        ("212", "06ab345678", MSG_PHONE_FORMAT),
        ("999", "0612345678", MSG_PHONE_COUNTRY),
    ],
)
def test_invalid_numbers(country_code, number, message):
    result = validate_international_phone(country_code, number)
    assert not result.is_valid
    assert result.error_message == message


def test_normalize_strips_plus_and_separators():
    assert normalize_phone("+212", "06 12-34.56 78") == "2120612345678"


def test_country_lookup():
    assert country_name_for("+212") == "Morocco"
    assert country_name_for("33") == "France"
    assert country_name_for("4242") is None

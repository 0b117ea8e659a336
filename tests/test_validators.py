import pytest
from app.errors import InvalidPhoneFormat, MissingRequiredField
from app.utils.validators import normalize_phone, require, validate_phone

@pytest.mark.parametrize("digits", ["5551234567", "2125550000", "0000000000"])
def test_ten_digits_get_us_country_code(digits):
    assert normalize_phone(digits) == "+1" + digits

@pytest.mark.parametrize("digits", ["15551234567", "12125550000"])
def test_eleven_digits_with_leading_one(digits):
    assert normalize_phone(digits) == "+" + digits

def test_formatting_is_stripped():
    assert normalize_phone("(555) 123-4567") == "+15551234567"
    assert normalize_phone("1.555.123.4567") == "+15551234567"

def test_canonical_input_is_unchanged():
    assert normalize_phone("+15551234567") == "+15551234567"
    assert normalize_phone(normalize_phone("+15551234567")) == "+15551234567"

def test_international_number_passes_through():
    assert normalize_phone("+447911123456") == "+447911123456"
    assert normalize_phone("+919310082225") == "+919310082225"

@pytest.mark.parametrize("raw", ["abc", "", "12345", "25551234567", "447911123456", "+12345"])
def test_invalid_formats_rejected(raw):
    with pytest.raises(InvalidPhoneFormat):
        normalize_phone(raw)

def test_require_reports_field():
    with pytest.raises(MissingRequiredField) as exc:
        require("  ", "phone")
    assert exc.value.message == "Phone required."
    assert require(" 123 ", "code") == "123"

def test_validate_phone_missing_vs_invalid():
    with pytest.raises(MissingRequiredField):
        validate_phone(None)
    with pytest.raises(InvalidPhoneFormat):
        validate_phone("not a phone")

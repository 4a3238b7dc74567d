"""
Unit tests for phone number handling
"""

import pytest

from swiftwash.shared.validators import mask_phone, normalize_phone, validate_email, validate_phone


@pytest.mark.unit
class TestNormalizePhone:
    @pytest.mark.parametrize(
        "raw",
        ["0712345678", "712345678", "254712345678", "+254712345678", "+254 712 345 678", " 0712-345-678 "],
    )
    def test_common_formats_share_canonical_form(self, raw):
        normalized = normalize_phone(raw)
        assert normalized.canonical == "254712345678"
        assert normalized.e164 == "+254712345678"

    def test_variants_cover_legacy_storage_forms(self):
        variants = normalize_phone("+254 712 345 678").variants
        assert {"254712345678", "+254712345678", "0712345678", "712345678"} <= variants

    def test_no_digits(self):
        with pytest.raises(ValueError):
            normalize_phone("call me")

    def test_empty(self):
        with pytest.raises(ValueError):
            normalize_phone(None)


@pytest.mark.unit
class TestValidatePhone:
    def test_returns_canonical(self):
        assert validate_phone("0712 345 678") == "254712345678"

    def test_rejects_short_number(self):
        with pytest.raises(ValueError):
            validate_phone("07123")


@pytest.mark.unit
def test_mask_phone():
    assert mask_phone("254712345678") == "254***345678"


@pytest.mark.unit
def test_validate_email_lowercases():
    assert validate_email(" Jane@Example.COM ") == "jane@example.com"
    with pytest.raises(ValueError):
        validate_email("not-an-email")

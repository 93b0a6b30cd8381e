"""
Tests for the card validator (pure functions, no database).

These tests verify:
  - The Luhn checksum against known good and bad numbers
  - CVV length and digit rules
  - Expiration rules relative to a fixed "today", including the current month
  - validate_card's check order and its messages
"""

from datetime import date

import pytest

from checkout_api.exceptions import InvalidCardDataError, InvalidExpirationFormatError
from checkout_api.services.card_validator import (
    is_cvv_valid,
    is_expiration_valid,
    is_luhn_valid,
    normalize_card_number,
    validate_card,
)

TODAY = date(2026, 10, 19)


class TestLuhn:

    @pytest.mark.parametrize("number", [
        "4539148803436467",
        "4111111111111111",
        "5555555555554444",
        "378282246310005",
        "4539 1488 0343 6467",
        "4539-1488-0343-6467",
    ])
    def test_valid_numbers(self, number):
        assert is_luhn_valid(number) is True

    @pytest.mark.parametrize("number", [
        "4539148803436468",
        "4111111111111112",
        "1234567812345678",
    ])
    def test_invalid_numbers(self, number):
        assert is_luhn_valid(number) is False

    def test_empty_is_invalid(self):
        assert is_luhn_valid("") is False
        assert is_luhn_valid("----") is False

    def test_normalize_strips_separators(self):
        assert normalize_card_number("4539 1488-0343 6467") == "4539148803436467"


class TestCvv:

    @pytest.mark.parametrize("cvv", ["123", "0000", "999"])
    def test_valid(self, cvv):
        assert is_cvv_valid(cvv) is True

    @pytest.mark.parametrize("cvv", ["", "12", "12345", "12a", "١٢٣"])
    def test_invalid(self, cvv):
        assert is_cvv_valid(cvv) is False


class TestExpiration:

    def test_future_year(self):
        assert is_expiration_valid("01", "27", today=TODAY) is True

    def test_current_month_is_still_valid(self):
        assert is_expiration_valid("10", "26", today=TODAY) is True

    def test_later_month_this_year(self):
        assert is_expiration_valid("12", "26", today=TODAY) is True

    def test_previous_month_is_expired(self):
        assert is_expiration_valid("09", "26", today=TODAY) is False

    def test_past_year_is_expired(self):
        assert is_expiration_valid("12", "25", today=TODAY) is False

    @pytest.mark.parametrize("month", ["00", "13", "99"])
    def test_month_out_of_range(self, month):
        assert is_expiration_valid(month, "30", today=TODAY) is False

    @pytest.mark.parametrize("month,year", [("ab", "30"), ("12", "x1"), ("", "30")])
    def test_non_numeric_raises_format_error(self, month, year):
        with pytest.raises(InvalidExpirationFormatError):
            is_expiration_valid(month, year, today=TODAY)

    def test_format_error_is_invalid_card_data(self):
        """Callers that catch InvalidCardDataError also catch format errors."""
        assert issubclass(InvalidExpirationFormatError, InvalidCardDataError)


class TestValidateCard:

    def test_valid_card_passes(self):
        validate_card("4539148803436467", "123", "12", "30", today=TODAY)

    def test_luhn_failure_message(self):
        with pytest.raises(InvalidCardDataError) as exc_info:
            validate_card("4539148803436468", "123", "12", "30", today=TODAY)
        assert exc_info.value.detail == "El número de tarjeta es inválido (Luhn check fallido)."

    def test_cvv_failure_message(self):
        with pytest.raises(InvalidCardDataError) as exc_info:
            validate_card("4539148803436467", "12", "12", "30", today=TODAY)
        assert exc_info.value.detail == "El CVV es inválido para este tipo de tarjeta."

    def test_expiration_failure_message(self):
        with pytest.raises(InvalidCardDataError) as exc_info:
            validate_card("4539148803436467", "123", "01", "20", today=TODAY)
        assert exc_info.value.detail == "La fecha de expiración es inválida o ha expirado."

    def test_luhn_checked_before_cvv(self):
        """With several problems, the first check in order wins."""
        with pytest.raises(InvalidCardDataError) as exc_info:
            validate_card("4539148803436468", "1", "01", "20", today=TODAY)
        assert "Luhn" in exc_info.value.detail

    @pytest.mark.parametrize("number", ["453914880343", "45391488034364670"])
    def test_length_outside_13_to_16(self, number):
        with pytest.raises(InvalidCardDataError):
            validate_card(number, "123", "12", "30", today=TODAY)

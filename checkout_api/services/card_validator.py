"""
Card validator — pure checks run before any card is tokenized.

validate_card() runs, in order:
  1. Card number format: 13-16 digits once separators are stripped
  2. Luhn checksum
  3. CVV: 3 or 4 ASCII digits
  4. Expiration (MM/YY) not in the past, compared against the wall clock

The first failing check raises InvalidCardDataError with its message, and
that message reaches the caller unchanged.

These functions touch no database and hold no state, so they are tested
directly without the HTTP layer.
"""

import re
from datetime import date

from checkout_api.exceptions import InvalidCardDataError, InvalidExpirationFormatError

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_card_number(card_number: str) -> str:
    """Strip spaces, dashes and any other non-digit characters."""
    return _NON_DIGITS.sub("", card_number)


def is_luhn_valid(card_number: str) -> bool:
    """
    Check a card number against the Luhn (mod 10) algorithm.

    Walking right to left, every second digit is doubled and 9 is
    subtracted when the result exceeds 9. The total must be a multiple of 10.

    >>> is_luhn_valid("4539 1488 0343 6467")
    True
    >>> is_luhn_valid("4539 1488 0343 6468")
    False
    """
    digits = normalize_card_number(card_number)
    if not digits:
        return False

    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_cvv_valid(cvv: str) -> bool:
    """CVV must be 3 or 4 ASCII digits."""
    return 3 <= len(cvv) <= 4 and cvv.isascii() and cvv.isdigit()


def is_expiration_valid(month: str, year: str, today: date | None = None) -> bool:
    """
    Check that an MM/YY expiration is not in the past.

    YY is compared with the last two digits of the current year; a card
    expiring in the current month is still valid.

    Args:
        month: Two-digit month, "01".."12".
        year: Two-digit year, e.g. "49".
        today: Reference date (defaults to the local date).

    Raises:
        InvalidExpirationFormatError: If month or year is not numeric.
    """
    if not (month.isascii() and month.isdigit() and year.isascii() and year.isdigit()):
        raise InvalidExpirationFormatError()

    exp_month = int(month)
    exp_year = int(year)
    if not 1 <= exp_month <= 12:
        return False

    today = today or date.today()
    current_year = today.year % 100
    current_month = today.month

    if exp_year > current_year:
        return True
    return exp_year == current_year and exp_month >= current_month


def validate_card(
    card_number: str,
    cvv: str,
    expiration_month: str,
    expiration_year: str,
    today: date | None = None,
) -> None:
    """
    Run every pre-tokenization check. The first failure wins.

    Raises:
        InvalidCardDataError: If any check fails.
        InvalidExpirationFormatError: If the expiration is not numeric.
    """
    digits = normalize_card_number(card_number)
    if not 13 <= len(digits) <= 16:
        raise InvalidCardDataError("El número de tarjeta debe tener entre 13 y 16 dígitos.")
    if not is_luhn_valid(digits):
        raise InvalidCardDataError("El número de tarjeta es inválido (Luhn check fallido).")
    if not is_cvv_valid(cvv):
        raise InvalidCardDataError("El CVV es inválido para este tipo de tarjeta.")
    if not is_expiration_valid(expiration_month, expiration_year, today=today):
        raise InvalidCardDataError("La fecha de expiración es inválida o ha expirado.")

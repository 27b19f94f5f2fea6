"""
Checksum validation for Italian fiscal identifiers.

- Partita IVA: 11 digits, last digit is a Luhn-style check digit
- Codice fiscale: 16 characters for individuals (check letter at the end),
  or 11 digits for legal entities (same algorithm as the partita IVA)
"""

import re


ITALIAN_VAT_PATTERN = re.compile(r"^\d{11}$")
EU_VAT_PATTERN = re.compile(r"^[A-Z]{2}\d{8,12}$")

# Digits may be replaced by letters on homocodic codes (omocodia)
PERSONAL_TAX_CODE_PATTERN = re.compile(
    r"^[A-Z]{6}[\dLMNPQRSTUV]{2}[A-Z][\dLMNPQRSTUV]{2}[A-Z][\dLMNPQRSTUV]{3}[A-Z]$"
)

# Values for characters in odd positions (1-based) of a codice fiscale
_ODD_VALUES = {
    "0": 1, "1": 0, "2": 5, "3": 7, "4": 9, "5": 13, "6": 15, "7": 17, "8": 19, "9": 21,
    "A": 1, "B": 0, "C": 5, "D": 7, "E": 9, "F": 13, "G": 15, "H": 17, "I": 19, "J": 21,
    "K": 2, "L": 4, "M": 18, "N": 20, "O": 11, "P": 3, "Q": 6, "R": 8, "S": 12, "T": 14,
    "U": 16, "V": 10, "W": 22, "X": 25, "Y": 24, "Z": 23,
}


def _normalize(value: str) -> str:
    return value.replace(" ", "").upper()


def is_valid_italian_vat(vat_number: str) -> bool:
    """Check an 11-digit partita IVA, rejecting repeated-digit sequences."""
    if not ITALIAN_VAT_PATTERN.match(vat_number):
        return False
    if len(set(vat_number)) == 1:
        return False

    digits = [int(c) for c in vat_number]
    total = 0
    for i, digit in enumerate(digits[:10]):
        if i % 2 == 0:
            total += digit
        else:
            doubled = digit * 2
            total += doubled - 9 if doubled > 9 else doubled
    check_digit = (10 - total % 10) % 10
    return check_digit == digits[10]


def is_valid_vat_number(vat_number: str | None) -> bool:
    """
    Validate an Italian or EU VAT number.

    Italian numbers (optionally prefixed with IT) are checksum-verified;
    other EU numbers are checked for format only.
    """
    if not vat_number:
        return False
    value = _normalize(vat_number)
    if value.startswith("IT") and ITALIAN_VAT_PATTERN.match(value[2:]):
        return is_valid_italian_vat(value[2:])
    if ITALIAN_VAT_PATTERN.match(value):
        return is_valid_italian_vat(value)
    return bool(EU_VAT_PATTERN.match(value))


def tax_code_check_letter(first_fifteen: str) -> str:
    """Compute the check letter of a 16-character codice fiscale."""
    total = 0
    for position, char in enumerate(first_fifteen, start=1):
        if position % 2 == 1:
            total += _ODD_VALUES[char]
        else:
            total += int(char) if char.isdigit() else ord(char) - ord("A")
    return chr(ord("A") + total % 26)


def is_valid_tax_code(tax_code: str | None) -> bool:
    """Validate a codice fiscale for individuals or legal entities."""
    if not tax_code:
        return False
    value = _normalize(tax_code)
    if PERSONAL_TAX_CODE_PATTERN.match(value):
        return tax_code_check_letter(value[:15]) == value[15]
    if ITALIAN_VAT_PATTERN.match(value):
        return is_valid_italian_vat(value)
    return False

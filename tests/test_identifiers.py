"""Tests for partita IVA and codice fiscale validation."""

import pytest

from fiscalcheck.domain.identifiers import (
    is_valid_italian_vat,
    is_valid_tax_code,
    is_valid_vat_number,
    tax_code_check_letter,
)


@pytest.mark.parametrize("vat", ["01234567897", "00743110157", "IT01234567897", "it 0074311 0157"])
def test_valid_italian_vat_numbers(vat):
    assert is_valid_vat_number(vat)


@pytest.mark.parametrize("vat", ["01234567890", "11111111111", "1234", "", None])
def test_invalid_italian_vat_numbers(vat):
    assert not is_valid_vat_number(vat)


def test_eu_vat_number_format_only():
    assert is_valid_vat_number("DE123456789")
    assert not is_valid_vat_number("DE12")


def test_repeated_digits_rejected():
    assert not is_valid_italian_vat("00000000000")


def test_tax_code_check_letter():
    assert tax_code_check_letter("RSSMRA85T10A562") == "S"


def test_valid_personal_tax_code():
    assert is_valid_tax_code("RSSMRA85T10A562S")
    assert is_valid_tax_code("rssmra85t10a562s")


def test_tax_code_with_wrong_check_letter():
    assert not is_valid_tax_code("RSSMRA85T10A562T")


def test_legal_entity_tax_code_uses_vat_checksum():
    assert is_valid_tax_code("00743110157")
    assert not is_valid_tax_code("00743110158")


def test_malformed_tax_code():
    assert not is_valid_tax_code("RSSMRA85")
    assert not is_valid_tax_code(None)
